from diffreview.cli import app

app(prog_name="diffreview")
