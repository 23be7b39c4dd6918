# shared/core/exceptions.py

class SeawatchError(Exception):
    """Base exception for all application errors"""
    pass

class ServiceError(SeawatchError):
    """Base exception for service layer errors"""
    pass

class RepositoryError(SeawatchError):
    """Base exception for repository layer errors"""
    pass

class ChainClientError(SeawatchError):
    """Transport errors raised while talking to the ledger node"""
    pass

class DecodeError(SeawatchError):
    """A single log could not be decoded against its event definition"""
    pass

class ReplayError(ServiceError):
    """A replay pass finished without advancing its checkpoint"""
    pass

class ConfigurationError(SeawatchError):
    """Base exception for configuration errors"""
    pass
