from .app import create_app
from .settings import validate_required_envs

validate_required_envs()

app = create_app()
