import typer
import requests
import os


app = typer.Typer()
BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
API_KEY = os.getenv("API_KEY")


def _headers():
    h = {}
    if API_KEY:
        h["X-API-Key"] = API_KEY
    return h


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("tx_engine.api.main:app", host=host, port=port)


@app.command()
def ingest(d1: int, d2: int, d3: int, source: str = typer.Option("cli")):
    r = requests.post(f"{BASE}/ingest", json={"d1": d1, "d2": d2, "d3": d3, "source": source}, headers=_headers())
    typer.echo(r.json())


@app.command()
def predict():
    r = requests.post(f"{BASE}/predict", headers=_headers())
    typer.echo(r.json())


@app.command()
def stats(family: str = typer.Option(None), value: str = typer.Option(None), limit: int = 20):
    params = {"limit": limit}
    if family:
        params["family"] = family
    if value is not None:
        params["value"] = value
    r = requests.get(f"{BASE}/stats", params=params, headers=_headers())
    typer.echo(r.json())


@app.command()
def summary():
    r = requests.get(f"{BASE}/summary", headers=_headers())
    typer.echo(r.json())


if __name__ == "__main__":
    app()
