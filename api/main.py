from fastapi import FastAPI

from api.routers import reports

app = FastAPI(title="fibr-gen")

# Include Routers
app.include_router(reports.router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
