from servicekit.cli.app import app

app()
