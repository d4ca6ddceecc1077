# tracker/client.py
"""Look up an order from the command line: python -m tracker.client --email E --reference R"""
import argparse
import sys
import requests

DEFAULT_SERVER = "http://127.0.0.1:8000"

def lookup_order(server_url: str, email: str, reference: str, timeout: float = 5):
    r = requests.post(f"{server_url.rstrip('/')}/api/public/order-access",
                      json={'email': email, 'reference': reference}, timeout=timeout)
    try:
        body = r.json()
    except ValueError:
        body = {}
    if not r.ok:
        raise LookupError(body.get('error') or f"HTTP {r.status_code}")
    return body

def format_order(result: dict) -> str:
    order = result['order']
    lines = [f"Order {order['orderNumber']} ({order.get('trackingNumber') or 'no tracking'}): {order['status']}"]
    device = order.get('device')
    if device:
        lines.append(f"Device: {device['name']}")
    for ev in result.get('timeline', []):
        lines.append(f"  {ev.get('date') or '-'}  {ev.get('location') or ''}  {ev.get('description') or ''}".rstrip())
    return "\n".join(lines)

def main(argv=None):
    parser = argparse.ArgumentParser(description="Order tracking lookup")
    parser.add_argument('--email', required=True)
    parser.add_argument('--reference', required=True, help='order or tracking number')
    parser.add_argument('--server', default=DEFAULT_SERVER)
    args = parser.parse_args(argv)
    try:
        result = lookup_order(args.server, args.email, args.reference)
    except (LookupError, requests.RequestException) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    print(format_order(result))
    return 0

if __name__ == '__main__':
    sys.exit(main())
