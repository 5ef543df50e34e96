import sys

from mcp_webcam.main import run

sys.exit(run())
