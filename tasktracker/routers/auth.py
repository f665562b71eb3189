from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.models.user import User
from tasktracker.routers.deps import get_current_user
from tasktracker.schemas.user import UserCreate, UserLogin
from tasktracker.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    result = auth_service.register(db, user.email, user.password, user.name)
    return {"success": True, "message": "User registered successfully", "data": result}


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    result = auth_service.login(db, user.email, user.password)
    return {"success": True, "message": "Login successful", "data": result}


@router.get("/profile")
def profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": auth_service.serialize_user(current_user)}}
