# leaf_scanner/api/__init__.py
# Import the router
from leaf_scanner.api.routes import router
