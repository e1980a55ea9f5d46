from sandbox_verifier.cli.main import app

app(prog_name="sandbox-verify")
