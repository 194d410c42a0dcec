import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

import database
import listings
import suggestions
import users
from auth import get_caller_id, require_caller
from config import DEFAULT_JWT_SECRET, settings
from database import ensure_indexes, get_db
from errors import AppError, InternalError
from schemas import Communication, Difficulty, Link

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; tokens are signed with the built-in default")
    if database.db is not None:
        try:
            ensure_indexes(database.db)
        except PyMongoError:
            logger.exception("Could not create indexes")
            raise
    yield


app = FastAPI(title="Student Collaboration API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --------- Error handling ---------

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = str(loc[-1]) if loc else "body"
    if errors and errors[0].get("type") == "missing":
        message = f"Missing required field: {field}"
    else:
        message = f"Invalid value for field: {field}"
    return JSONResponse(status_code=400, content={"message": message, "field": field})


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    err = InternalError()
    return JSONResponse(status_code=err.status_code, content={"message": err.message})


# --------- Schemas (light, for request bodies) ---------
class RegisterIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileIn(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    githubUsername: Optional[str] = None
    links: List[Link] = []


# Fields are optional here so a missing one is reported by name
class ProjectIn(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    techStack: Optional[List[str]] = None
    teamSize: Optional[int] = Field(None, ge=0)
    timeframe: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    category: Optional[str] = None
    commitment: Optional[str] = None
    communication: Optional[Communication] = None
    githubRequired: Optional[bool] = None


class InterestIn(BaseModel):
    projectId: Optional[str] = None


class MessageIn(BaseModel):
    projectId: Optional[str] = None
    message: Optional[str] = None


# --------- Root & Test ---------
@app.get("/")
def read_root():
    return {"message": "Student Collaboration Backend Running"}


@app.get("/test")
def test_database():
    db = database.db
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.DATABASE_URL else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    if db is None:
        return response
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


# --------- Auth ---------
@app.post("/api/auth/register", status_code=201)
def register(body: RegisterIn, db=Depends(get_db)):
    user = users.register_user(db, body.name, body.email, body.password)
    return {"message": "User created successfully", "user": user}


@app.post("/api/auth/login")
def login(body: LoginIn, db=Depends(get_db)):
    return users.login(db, body.email, body.password)


# --------- Profile ---------
@app.get("/api/user/profile")
def get_profile(caller_id: str = Depends(require_caller), db=Depends(get_db)):
    return users.get_profile(db, caller_id)


@app.put("/api/user/profile")
def update_profile(body: ProfileIn, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    user = users.update_profile(db, caller_id, body.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": user}


@app.get("/api/user/projects")
def my_projects(caller_id: str = Depends(require_caller), db=Depends(get_db)):
    return {"projects": listings.user_projects(db, caller_id)}


# --------- Categories ---------
@app.get("/api/categories")
def get_categories(db=Depends(get_db)):
    in_use = listings.list_categories(db)
    return {"categories": in_use, "options": listings.category_options(in_use)}


# --------- Projects ---------
@app.get("/api/projects")
def list_projects(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    title: Optional[str] = None,
    search: Optional[str] = None,
    db=Depends(get_db),
):
    items = listings.list_projects(db, category=category, difficulty=difficulty, title=title, search=search)
    return {"projects": items}


@app.post("/api/projects", status_code=201)
def create_project(body: ProjectIn, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    project = listings.create_project(db, caller_id, body.model_dump())
    return {"message": "Project created successfully", "project": project}


# Declared before /api/projects/{project_id} so "interest" is not taken as an id
@app.get("/api/projects/interest/check")
def check_interest(projectId: str, caller_id: Optional[str] = Depends(get_caller_id), db=Depends(get_db)):
    return {"hasInterest": listings.has_interest(db, caller_id, projectId)}


@app.post("/api/projects/interest")
def express_interest(body: InterestIn, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    listings.express_interest(db, caller_id, body.projectId)
    return {"message": "Interest expressed successfully"}


@app.get("/api/projects/{project_id}")
def get_project(project_id: str, db=Depends(get_db)):
    return listings.get_project(db, project_id)


@app.put("/api/projects/{project_id}")
def update_project(project_id: str, body: ProjectIn, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    project = listings.update_project(db, caller_id, project_id, body.model_dump())
    return {"message": "Project updated successfully", "project": project}


@app.delete("/api/projects/{project_id}")
def delete_project(project_id: str, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    listings.delete_project(db, caller_id, project_id)
    return {"message": "Project deleted successfully"}


# --------- Messages ---------
@app.post("/api/messages")
def send_message(body: MessageIn, caller_id: str = Depends(require_caller), db=Depends(get_db)):
    data = listings.send_message(db, caller_id, body.projectId, body.message)
    return {"message": "Message sent successfully. The team leader will contact you soon.", "data": data}


# --------- Search ---------
@app.get("/api/search/suggestions")
def search_suggestions(q: Optional[str] = None, db=Depends(get_db)):
    return {"suggestions": suggestions.suggest(db, q)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
