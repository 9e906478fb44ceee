"""
Custom exceptions for Serato Import

This module defines all custom exceptions used throughout the application
to provide clear error handling and debugging information.
"""

class SeratoImportError(Exception):
    """Base exception for all Serato Import errors"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.filepath = filepath
    
    def __str__(self):
        parts = [self.message]
        if self.filepath:
            parts.append(f"File: {self.filepath}")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " | ".join(parts)


class ArgumentError(SeratoImportError):
    """Raised for bad command line arguments (arity, date, root directory)"""
    pass


class MissingResourceError(SeratoImportError):
    """Raised when a required resource such as the Serato database is absent"""
    pass


class ServiceError(SeratoImportError):
    """Raised when a service operation fails"""
    
    def __init__(self, service_name: str, message: str, details: str = None, filepath: str = None):
        super().__init__(message, details, filepath)
        self.service_name = service_name
    
    def __str__(self):
        return f"[{self.service_name}] {super().__str__()}"


class BitrateProbeError(ServiceError):
    """Raised when a bitrate cannot be determined"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("BitrateProbe", message, details, filepath)


class TaggingError(ServiceError):
    """Raised when writing a metadata tag fails"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Tagging", message, details, filepath)


class FileOperationError(ServiceError):
    """Raised when file operations fail"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("FileOperations", message, details, filepath)


class DatabaseError(ServiceError):
    """Raised when the Serato database or a crate cannot be read or written"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Database", message, details, filepath)


class LifecycleError(ServiceError):
    """Raised when the consuming application cannot be quit or launched"""
    
    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Lifecycle", message, details, filepath)
