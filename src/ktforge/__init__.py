"""
ktforge: repair generated Kotlin and assemble it into a Gradle project.
"""

__version__ = "0.1.0"
