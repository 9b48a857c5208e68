import sys

from connhealth.main import main

raise SystemExit(main(sys.argv[1:]))
