import sys

from avatar_sprite.cli import main

sys.exit(main())
