from .pdf import default_pdf_name, render_to_pdf

__all__ = ["default_pdf_name", "render_to_pdf"]
