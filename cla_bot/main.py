from dotenv import load_dotenv


from fastapi import FastAPI

from cla_bot.api.api_v1 import router as api_v1
from cla_bot.core.config import settings
from cla_bot.core.lifespan import lifespan

load_dotenv()  # Load .env variables into os.environ for libraries (httpx proxies, etc.)


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)


@app.get("/")
def root():
    return {"message": f"Hello from {settings.PROJECT_NAME}!"}


app.include_router(api_v1)


def run():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=4200)


if __name__ == "__main__":
    run()
