import sys

from gcloud_cli.cli import main

sys.exit(main())
