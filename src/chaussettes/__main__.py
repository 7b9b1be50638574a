from chaussettes.cmd.cli import app

app(prog_name="chaussettes")
