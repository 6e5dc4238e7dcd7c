"""
Base Detector Class
Provides common configuration management for all detectors
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Union

from config.settings import Settings

logger = logging.getLogger(__name__)


class DetectorBase(ABC):
    """Base class for all detection algorithms"""

    def __init__(self, settings_or_config: Union[Settings, Dict, None], detector_type: str):
        """
        Initialize base detector with configuration validation

        Args:
            settings_or_config: Settings object or raw configuration dict (None for defaults)
            detector_type: Type of detector (e.g., 'correlation', 'relation')

        Raises:
            ValueError: If the configuration is invalid
        """
        # Support both the Settings object and a raw config dict
        if isinstance(settings_or_config, Settings):
            self.settings = settings_or_config
        else:
            self.settings = Settings(settings_or_config or {})

        self.detector_type = detector_type

        # Initialize detector-specific configuration
        self._load_detector_config()

        logger.info(f"🔧 {detector_type.title()}Detector initialized")

    @abstractmethod
    def _load_detector_config(self):
        """Load detector-specific configuration from settings"""
        pass
