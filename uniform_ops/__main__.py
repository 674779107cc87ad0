from uniform_ops.cli import main

raise SystemExit(main())
