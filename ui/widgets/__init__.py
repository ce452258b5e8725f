from .pdf_display import PDFDisplayLabel
from .annotation_widgets import AnnotationWidget, TextFieldWidget, SignatureFieldWidget
from .signature_pad import SignaturePad
from .signing_panel import SigningPanel

__all__ = [
    "PDFDisplayLabel",
    "AnnotationWidget",
    "TextFieldWidget",
    "SignatureFieldWidget",
    "SignaturePad",
    "SigningPanel",
]
