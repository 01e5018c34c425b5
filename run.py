# run.py
from dotenv import load_dotenv
from pathlib import Path
import os

root = Path(__file__).resolve().parent
env_path = root / ".env"

load_dotenv(dotenv_path=str(env_path), override=True)

from relay import create_app


app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 3000))
    app.run(host="0.0.0.0", port=port)
