from healthsync.cli.cli import app

app()
