# tracker/app/main.py
import logging
import uvicorn
from .config import settings

def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def run():
    configure_logging()
    uvicorn.run('tracker.app.api:app', host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL)

if __name__ == '__main__':
    run()
