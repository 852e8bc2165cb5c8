# src/home_bridge/utils/exceptions.py

class HomeBridgeError(Exception):
    """Base exception class for the home bridge"""
    pass

class ConfigurationError(HomeBridgeError):
    """Raised when there are issues with configuration"""
    pass

class InitializationError(HomeBridgeError):
    """Raised when component initialization fails"""
    pass

class CommunicationError(HomeBridgeError):
    """Raised when communication with the message bus fails"""
    pass

class PublishFailed(CommunicationError):
    """Raised when the bus rejects or cannot send a command"""
    pass

class IngestionError(HomeBridgeError):
    """Base exception for inbound bus message problems"""
    pass

class MalformedPayload(IngestionError):
    """Raised when a bus payload is not a finite decimal number"""
    pass

class UnknownTopic(IngestionError):
    """Raised when a bus topic maps to no known route"""
    pass

class CommandError(HomeBridgeError):
    """Base exception for device command problems"""
    pass

class UnknownDevice(CommandError):
    """Raised when a command targets a device with no mapped topic"""
    pass

class DatabaseError(HomeBridgeError):
    """Base exception for database errors"""
    pass

class ConnectionPoolError(DatabaseError):
    """Exception for connection pool related errors"""
    pass

class StoreUnavailable(DatabaseError):
    """Raised when the history store cannot be written or queried"""
    pass
