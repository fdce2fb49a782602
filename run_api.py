"""Convenience launcher for the video backend from project root.
Usage:
  python run_api.py --port 5001 --host 127.0.0.1

Point the provider's webhook at http://<host>:<port>/webhooks/mux.
"""
import sys, argparse, pathlib, uvicorn

ROOT = pathlib.Path(__file__).parent.resolve()
BACKEND_DIR = ROOT / 'backend'
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

def main():
  parser = argparse.ArgumentParser()
  parser.add_argument('--host', default='127.0.0.1')
  parser.add_argument('--port', type=int, default=5001)
  parser.add_argument('--reload', action='store_true')
  parser.add_argument('--log-level', default='info')
  args = parser.parse_args()

  uvicorn.run('app.main:app', host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)


if __name__ == '__main__':
  main()
