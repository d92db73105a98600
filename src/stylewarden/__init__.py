"""stylewarden: convention rules over syntax trees and compiled metadata."""

__version__ = "0.3.0"
