# agenda_core/webapp/serve.py
"""Script para executar o servidor web do Agenda Core."""

import os

import uvicorn
from dotenv import load_dotenv

# Carrega automaticamente as variaveis do arquivo .env
load_dotenv()


def main() -> None:
    """Inicia o servidor web do Agenda Core."""
    uvicorn.run(
        "agenda_core.webapp.app:create_app",
        factory=True,
        host=os.environ.get("AGENDA_HOST", "127.0.0.1"),
        port=int(os.environ.get("AGENDA_PORT", "8000")),
        reload=os.environ.get("AGENDA_RELOAD", "").lower() in {"1", "true", "sim"},
        log_level="info",
    )


if __name__ == "__main__":
    main()
