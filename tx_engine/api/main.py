import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from contextlib import asynccontextmanager
from tx_engine.config import settings
from tx_engine.db.base import init_db
from tx_engine.api.broadcast import Broadcaster
from tx_engine.api.routes import router
from tx_engine import services

logger = logging.getLogger(__name__)

broadcaster = Broadcaster()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()
    services.configure(notify=broadcaster.publish)
    yield
    services.configure()

app = FastAPI(title="TaiXiu Pattern Engine", lifespan=lifespan)
app.include_router(router)

PAGE = r"""<!doctype html><html lang="vi"><head>
<meta charset="utf-8"/><title>TX Pattern Engine</title>
<style>
*{box-sizing:border-box}body{background:#030712;color:#c7f5ff;font-family:ui-monospace,Consolas,monospace;padding:20px}
.grid{display:grid;grid-template-columns:1fr 1fr;gap:14px}
.card{border:1px solid #1f3b52;background:#071523;border-radius:12px;padding:14px}
.badge{padding:4px 8px;border-radius:6px;font-weight:600}
.TAI{background:#0c2f1d;color:#5dff9e}.XIU{background:#2b0c17;color:#ffa4c4}.SKIP{background:#332600;color:#ffec8a}
#log{max-height:520px;overflow-y:auto}.row{border-bottom:1px dashed #1c3444;padding:6px 0}
</style></head><body>
<h2>TX Pattern Engine</h2>
<div class="grid">
  <div class="card"><div id="predict">Đang chờ dữ liệu…</div></div>
  <div class="card"><div id="log"></div></div>
</div>
<script>
const ws = new WebSocket((location.protocol==='https:'?'wss://':'ws://')+location.host+'/ws');
ws.onmessage = e => {
  const m = JSON.parse(e.data), d = m.data;
  if(m.event==='predict'){
    document.getElementById('predict').innerHTML =
      'Dự đoán: <span class="badge '+d.pick+'">'+d.pick+'</span> — '+(d.confidence*100).toFixed(1)+'% ('+d.mode+')';
  } else if(m.event==='round'){
    const log = document.getElementById('log');
    const t = new Date().toLocaleTimeString('vi-VN',{hour12:false});
    log.innerHTML = '<div class="row">'+t+' — #'+d.sequence_id+' SUM:'+d.sum+' — <span class="'+d.outcome+'">'+d.outcome+'</span></div>'+log.innerHTML;
  }
};
</script></body></html>
"""

@app.get("/")
def home():
    return {"ok": True, "app": "TaiXiu Pattern Engine"}

@app.get("/dashboard", response_class=HTMLResponse)
def dashboard():
    return HTMLResponse(PAGE)

@app.websocket("/ws")
async def events(ws: WebSocket):
    await ws.accept()
    q = broadcaster.subscribe()
    try:
        while True:
            msg = await q.get()
            await ws.send_json(msg)
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(q)
