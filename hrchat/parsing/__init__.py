"""Pattern matching, filter trees and classifier output parsing."""
