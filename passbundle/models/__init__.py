from .pass_content import Image, Localization, PassContent

__all__ = ["Image", "Localization", "PassContent"]
