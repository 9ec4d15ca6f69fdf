from fieldnotes.cli import app

app(prog_name="fieldnotes")
