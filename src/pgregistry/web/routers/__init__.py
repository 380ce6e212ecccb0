from pgregistry.web.routers.export import router as export_router
from pgregistry.web.routers.imagekit import router as imagekit_router
from pgregistry.web.routers.seed import router as seed_router
from pgregistry.web.routers.students import router as students_router

__all__ = [
    "export_router",
    "imagekit_router",
    "seed_router",
    "students_router",
]
