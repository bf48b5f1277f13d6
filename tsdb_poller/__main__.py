from tsdb_poller.cli.runner import run_cli

run_cli()
