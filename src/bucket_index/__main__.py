import sys

from bucket_index._cli import main

sys.exit(main())
