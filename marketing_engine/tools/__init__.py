"""Developer scripts for running the engine from the command line."""
