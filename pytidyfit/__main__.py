from pytidyfit.cli import app

app(prog_name="pytidyfit")
