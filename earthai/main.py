from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn
from earthai.config import settings
from earthai.routers import chat_router, map_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="EarthAI Map Assistant API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router, prefix="/api", tags=["chat"])
app.include_router(map_router, prefix="/api", tags=["map"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


def run():
    uvicorn.run("earthai.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
