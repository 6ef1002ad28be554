"""Launch the Bulk Cropper command line tool."""

import sys

from BC_Libs.cli import main


if __name__ == "__main__":
    sys.exit(main())
