import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marzan_loyalty import config
from marzan_loyalty.db import engine, Base

from marzan_loyalty.models.user import User
from marzan_loyalty.models.loyalty_code import LoyaltyCode
from marzan_loyalty.models.purchase import Purchase
from marzan_loyalty.models.reward import Reward
from marzan_loyalty.models.product import Product
from marzan_loyalty.models.product_image import ProductImage

from marzan_loyalty.routes.auth import router as auth_router
from marzan_loyalty.routes.profile import router as profile_router
from marzan_loyalty.routes.purchases import router as purchases_router
from marzan_loyalty.routes.loyalty import router as loyalty_router
from marzan_loyalty.routes.products import router as products_router
from marzan_loyalty.routes.admin import router as admin_router
from marzan_loyalty.routes.admin_products import router as admin_products_router

from marzan_loyalty.services.email_service import build_email_backend
from marzan_loyalty.services.image_host import ImgurImageHost
from marzan_loyalty.services.postal_service import PostalLookup
from marzan_loyalty.services.session_events import SessionEventBus, log_session_change

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Marzan Loyalty")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Collaborators ────────────────────────────────────────────────
app.state.session_events = SessionEventBus()
app.state.session_events.subscribe(log_session_change)
app.state.email_backend = build_email_backend()
app.state.postal_lookup = PostalLookup()
app.state.image_host = ImgurImageHost()


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(purchases_router)
app.include_router(loyalty_router)
app.include_router(products_router)
app.include_router(admin_router)
app.include_router(admin_products_router)


@app.get("/")
def read_root():
    return {"message": "Marzan Loyalty is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001)
