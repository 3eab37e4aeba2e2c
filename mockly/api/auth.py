from fastapi import APIRouter, Depends, Request, Response
from mockly.core.dependencies import get_current_user
from mockly.models.user import UserCreate, UserLogin, UserOut
from mockly.services.auth_service import AuthService

router = APIRouter()

@router.post("/signup", response_model=UserOut)
async def signup(user: UserCreate, response: Response):
    result = await AuthService.signup(user)
    AuthService.set_session_cookie(response, result["token"])
    return result

@router.post("/login")
async def login(user: UserLogin, response: Response):
    result = await AuthService.login(user)
    AuthService.set_session_cookie(response, result["token"])
    return result

@router.get("/me")
async def me(current_user: dict = Depends(get_current_user)):
    return current_user

@router.api_route("/signout", methods=["GET", "POST"])
async def signout(request: Request, response: Response):
    cleared = AuthService.clear_session_cookies(request, response)
    return {
        "success": True,
        "message": "Signed out successfully",
        "clearedCookies": cleared
    }

@router.api_route("/clear-session", methods=["GET", "POST"])
async def clear_session(request: Request, response: Response):
    cleared = AuthService.clear_session_cookies(request, response)
    return {
        "success": True,
        "message": "All sessions cleared successfully",
        "clearedCookies": cleared
    }
