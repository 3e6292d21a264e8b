from .reusable import Reusable
from .settings_dict import GridSettingsDict
from .pipeline import contains_key, contains_stage
