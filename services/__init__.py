from .profile_service import get_profile, save_profile, ensure_profile

# Avoid importing reportlab-backed modules (render_service) at package import
# time. Import submodules directly where needed instead.

__all__ = ["get_profile", "save_profile", "ensure_profile"]
