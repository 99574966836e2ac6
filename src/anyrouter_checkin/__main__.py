"""AnyRouter 签到主入口"""

import sys

from anyrouter_checkin.cli import main

if __name__ == "__main__":
    sys.exit(main())
