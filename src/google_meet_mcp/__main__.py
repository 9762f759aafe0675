import sys

from google_meet_mcp.app.main import main

sys.exit(main())
