from fastapi import Request, HTTPException, Depends

from storefront.payments.models import UserIdentity

def get_current_user(request: Request) -> UserIdentity:
    # Bearer uniquement: pas de cookie de session pour cette API
    from storefront.auth.service import identity_from_header
    user = identity_from_header(request.headers.get("Authorization"))
    if user is None:
        raise HTTPException(status_code=401, detail="Non authentifié")
    return user

def require_admin(user: UserIdentity = Depends(get_current_user)) -> UserIdentity:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Accès interdit")
    return user
