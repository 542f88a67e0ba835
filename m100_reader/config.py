"""
Configuration for the M100 reader command line tool
"""

import os

from .constants import BAUD_SWITCH_DELAY, BRING_UP_DELAY, UPLOAD_BAUDRATE, BOOTLOADER_BAUDRATE

class Config:
    """Base configuration"""

    DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'

    # Serial Configuration
    DEFAULT_PORT = os.environ.get('M100_PORT', '/dev/ttyACM0')
    DEFAULT_BAUDRATE = int(os.environ.get('M100_BAUDRATE', UPLOAD_BAUDRATE))
    BOOTLOADER_BAUDRATE = BOOTLOADER_BAUDRATE
    READ_TIMEOUT = float(os.environ.get('M100_TIMEOUT', 1.0))  # seconds

    # Firmware image uploaded when the module does not answer GetVersion
    FIRMWARE_PATH = os.environ.get('M100_FIRMWARE')

    # Timing
    BAUD_SWITCH_DELAY = BAUD_SWITCH_DELAY
    BRING_UP_DELAY = BRING_UP_DELAY
    POLL_INTERVAL = 0.1  # between Query rounds while waiting for a tag

    # Reject response frames with a bad checksum byte
    VERIFY_CHECKSUM = os.environ.get('M100_VERIFY_CHECKSUM', 'False').lower() == 'true'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    LOG_LEVEL = 'WARNING'

class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'
    BAUD_SWITCH_DELAY = 0
    BRING_UP_DELAY = 0
    POLL_INTERVAL = 0

# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}

def get_config(name=None):
    """Get configuration by name, or from the M100_ENV environment variable"""
    config_name = name or os.environ.get('M100_ENV', 'default')
    return config.get(config_name, config['default'])
