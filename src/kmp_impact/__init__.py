"""kmp-impact - measures the reach of a shared Kotlin Multiplatform module into app code."""

__version__ = "0.1.0"
