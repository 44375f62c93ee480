# HTTP layer: FastAPI app, routers, middleware, SPA fallback
