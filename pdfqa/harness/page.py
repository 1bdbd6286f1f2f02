"""The HTML render harness served to the browser.

The page fetches ``/test.pdf``, renders every page with pdf.js onto its own
canvas in page order, and reports progress through ``<body>`` attributes that
the test driver polls.
"""

from __future__ import annotations

import json
from string import Template

LOADED_ATTR = "data-pdf-loaded"
PAGES_COUNT_ATTR = "data-pages-count"
ERROR_ATTR = "data-pdf-error"
ERROR_MESSAGE_ATTR = "data-pdf-error-message"

CONTAINER_SELECTOR = ".pdf-container"
CANVAS_SELECTOR = "canvas"
PDF_ROUTE = "/test.pdf"


def page_canvas_selector(page_number: int) -> str:
    return f"#page-{page_number} canvas"


_HARNESS_TEMPLATE = Template("""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>PDF Visual Test</title>
    <style>
      body {
        margin: 0;
        padding: 20px;
        background: #ffffff;
        font-family: Arial, sans-serif;
      }
      .pdf-container {
        background: white;
        max-width: 800px;
        margin: 0 auto;
        padding: 20px;
      }
      .pdf-page {
        margin: 20px 0;
        padding: 0;
        text-align: center;
        page-break-after: always;
        display: block;
        width: 100%;
        height: auto;
      }
      canvas {
        max-width: none;
        width: auto;
        height: auto;
        display: block;
        margin: 0 auto;
        padding: 0;
        border: none;
      }
      .loading {
        text-align: center;
        padding: 40px;
        font-size: 18px;
        color: #666;
      }
      .page-number {
        margin: 10px 0;
        color: #888;
        font-size: 12px;
      }
      *, *::before, *::after {
        animation-duration: 0s !important;
        animation-delay: 0s !important;
        transition-duration: 0s !important;
        transition-delay: 0s !important;
      }
    </style>
    <script src="$pdfjs_base/pdf.min.js"></script>
  </head>
  <body>
    <div class="pdf-container">
      <div class="loading" id="loading">Loading PDF for visual testing...</div>
      <div id="pdf-pages"></div>
    </div>
    <script>
      const RENDER_SCALE = $scale;

      async function loadPDF() {
        const loading = document.getElementById('loading');
        try {
          pdfjsLib.GlobalWorkerOptions.workerSrc = '$pdfjs_base/pdf.worker.min.js';
          const pdf = await pdfjsLib.getDocument($pdf_route).promise;
          const pagesContainer = document.getElementById('pdf-pages');

          for (let pageNum = 1; pageNum <= pdf.numPages; pageNum++) {
            const page = await pdf.getPage(pageNum);
            const viewport = page.getViewport({ scale: RENDER_SCALE });

            const canvas = document.createElement('canvas');
            canvas.width = Math.round(viewport.width);
            canvas.height = Math.round(viewport.height);

            const pageDiv = document.createElement('div');
            pageDiv.className = 'pdf-page';
            pageDiv.id = 'page-' + pageNum;

            const label = document.createElement('div');
            label.className = 'page-number';
            label.textContent = 'Page ' + pageNum;

            pageDiv.appendChild(canvas);
            pageDiv.appendChild(label);
            pagesContainer.appendChild(pageDiv);

            await page.render({ canvasContext: canvas.getContext('2d'), viewport: viewport }).promise;
          }

          loading.style.display = 'none';
          document.body.setAttribute('$pages_count_attr', String(pdf.numPages));
          document.body.setAttribute('$loaded_attr', 'true');
        } catch (error) {
          console.error('Error loading PDF:', error);
          const message = (error && error.message) ? error.message : String(error);
          loading.textContent = 'Error: ' + message;
          document.body.setAttribute('$error_message_attr', message);
          document.body.setAttribute('$error_attr', 'true');
        }
      }

      document.addEventListener('DOMContentLoaded', loadPDF);
    </script>
  </body>
</html>
""")


def render_harness_html(
    scale: float = 1.0,
    pdfjs_version: str = "3.11.174",
    pdfjs_cdn: str = "https://cdnjs.cloudflare.com/ajax/libs/pdf.js",
) -> str:
    """Build the harness document for a fixed render scale."""
    if scale <= 0:
        raise ValueError("scale must be positive")
    return _HARNESS_TEMPLATE.substitute(
        pdfjs_base=f"{pdfjs_cdn.rstrip('/')}/{pdfjs_version}",
        scale=repr(float(scale)),
        pdf_route=json.dumps(PDF_ROUTE),
        loaded_attr=LOADED_ATTR,
        pages_count_attr=PAGES_COUNT_ATTR,
        error_attr=ERROR_ATTR,
        error_message_attr=ERROR_MESSAGE_ATTR,
    )
