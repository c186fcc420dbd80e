from recordproxy.cli.app import app

app()
