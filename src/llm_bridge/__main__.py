from llm_bridge.cli.main import app

app(prog_name="llm-bridge")
