"""
Fournisseur d'identité (Supabase Auth) vu par le flux checkout.
Contrat étroit: verify(bearer_token) -> UserIdentity | None. Aucune émission de session ici.
"""
from typing import Optional, Dict, Any
import logging

from storefront.payments.models import UserIdentity
from .repository import get_user_from_access_token as _repo_get_user_from_token

logger = logging.getLogger(__name__)

def determine_role(metadata: Dict[str, Any] | None) -> str:
    role_lower = str((metadata or {}).get("role", "")).lower()
    if role_lower == "admin":
        return "admin"
    return "user"

def bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Extrait le token d'un en-tête 'Authorization: Bearer <token>' (None si absent/malformé)."""
    raw = (auth_header or "").strip()
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None

def verify(access_token: Optional[str]) -> Optional[UserIdentity]:
    """
    Vérifie un token via supabase.auth.get_user.
    - Retourne None si token absent, invalide ou expiré (l'appelant traduit en 401)
    """
    if not access_token:
        return None
    try:
        raw = _repo_get_user_from_token(access_token)
    except Exception:
        logger.info("auth.service.verify rejected token", exc_info=True)
        return None
    uid = raw.get("id")
    if not uid:
        return None
    return UserIdentity(
        id=str(uid),
        email=raw.get("email"),
        role=determine_role(raw.get("user_metadata") or {}),
    )

def identity_from_header(auth_header: Optional[str]) -> Optional[UserIdentity]:
    return verify(bearer_token(auth_header))
