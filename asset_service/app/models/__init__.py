# Import all models to ensure they are registered with SQLAlchemy
from shared.models.users import Users
from .dealers import Dealer
from .brands import Brand
from .clients import Client
from .assets import Asset
from .barcode_scan_logs import BarcodeScanLog
