from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import auth as _auth_module
from ..database import get_db
from ..logging_config import get_logger
from ..schemas import Token

router = APIRouter(tags=["auth"])
logger = get_logger("auth")


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = _auth_module.authenticate(db, form_data.username, form_data.password)
    if not user:
        logger.warning("LOGIN_FAILED username=%s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = _auth_module.create_access_token(data={"sub": user.id})
    logger.info("LOGIN_SUCCESS user_id=%s", user.id)
    return {"access_token": access_token, "token_type": "bearer"}
