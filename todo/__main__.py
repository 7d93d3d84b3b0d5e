# todo/__main__.py
from todo.cli import main

raise SystemExit(main())
