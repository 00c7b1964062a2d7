import uvicorn
import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import Base, engine
from .logging_config import configure_logging
from .realtime import sio
from .routers import auth, chats, friends, users

logger = configure_logging()
settings = get_settings()

# --- Initialize DB ---
Base.metadata.create_all(bind=engine)

# --- FastAPI + CORS setup ---
app = FastAPI(title="Social Chat", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(friends.router)
app.include_router(chats.router)


@app.get("/", tags=["root"])
async def read_root():
    return {"message": "Hello, World!"}

@app.get("/health")
async def health():
    return {"status": "ok"}


# --- SOCKET.IO mounted next to the REST app ---
app_sio = socketio.ASGIApp(sio, other_asgi_app=app)


if __name__ == "__main__":
    uvicorn.run(app_sio, host="0.0.0.0", port=4000)
