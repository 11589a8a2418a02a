from infinos.webapp.app import create_app

__all__ = [
    'create_app',
]
