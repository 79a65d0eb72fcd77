"""OASTWatch command line interface."""
