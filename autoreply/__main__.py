from autoreply.cli import app

app(prog_name="autoreply")
