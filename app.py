# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db mercogestor.db
  python app.py produtos add --nome Arroz --unidade kg --minimo 10
  python app.py mov add --produto <id> --tipo in --quantidade 40
  python app.py rel baixo
  python app.py serve --port 3000
"""

from mercogestor.adapters.cli import main

if __name__ == "__main__":
    main()
