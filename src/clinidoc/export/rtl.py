"""Right-to-left helpers for python-docx documents.

python-docx exposes run-level ``rtl`` and complex-script flags but has no API
for paragraph, table or section direction. The helpers below insert the
missing WordprocessingML elements in schema order so Word accepts the file.
"""

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from lxml import etree

from clinidoc.utils.hebrew import contains_rtl

# Elements that must follow <w:bidi/> inside <w:pPr>
_PPR_AFTER_BIDI = (
    "w:adjustRightInd", "w:snapToGrid", "w:spacing", "w:ind",
    "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap",
    "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr", "w:sectPr",
    "w:pPrChange",
)

# Elements that must follow <w:szCs/> inside <w:rPr>
_RPR_AFTER_SZCS = (
    "w:highlight", "w:u", "w:effect", "w:bdr", "w:shd", "w:fitText",
    "w:vertAlign", "w:rtl", "w:cs", "w:em", "w:lang", "w:eastAsianLayout",
    "w:specVanish", "w:oMath",
)

# Elements that must follow <w:bidiVisual/> inside <w:tblPr>
_TBLPR_AFTER_BIDI = (
    "w:tblStyleRowBandSize", "w:tblStyleColBandSize", "w:tblW", "w:jc",
    "w:tblCellSpacing", "w:tblInd", "w:tblBorders", "w:shd", "w:tblLayout",
    "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription",
    "w:tblPrChange",
)

# Elements that must follow <w:tblBorders/> inside <w:tblPr>
_TBLPR_AFTER_BORDERS = (
    "w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption",
    "w:tblDescription", "w:tblPrChange",
)

# Elements that must follow <w:bidi/> inside <w:sectPr>
_SECTPR_AFTER_BIDI = ("w:rtlGutter", "w:docGrid", "w:printerSettings", "w:sectPrChange")

BORDER_EDGES = ("top", "left", "bottom", "right", "insideH", "insideV")


def set_paragraph_rtl(paragraph) -> None:
    """Mark a paragraph right-to-left and right-aligned."""
    paragraph.alignment = WD_ALIGN_PARAGRAPH.RIGHT
    p_pr = paragraph._p.get_or_add_pPr()
    if p_pr.find(qn("w:bidi")) is None:
        p_pr.insert_element_before(OxmlElement("w:bidi"), *_PPR_AFTER_BIDI)


def style_run(run, font_name: str, size: int, bold: bool = False, color=None) -> None:
    """Apply font, size and direction to a run.

    The font is set for both Latin and complex-script text, and the size is
    mirrored into ``w:szCs`` since Word sizes Hebrew glyphs from it.

    Args:
        run: python-docx Run
        font_name: Font family
        size: Size in points
        bold: Bold for both Latin and complex script
        color: Optional RGBColor
    """
    font = run.font
    font.name = font_name
    font.size = Pt(size)
    font.bold = bold
    font.cs_bold = bold
    if color is not None:
        font.color.rgb = color

    r_pr = run._r.get_or_add_rPr()
    r_pr.get_or_add_rFonts().set(qn("w:cs"), font_name)

    sz_cs = r_pr.find(qn("w:szCs"))
    if sz_cs is None:
        sz_cs = OxmlElement("w:szCs")
        r_pr.insert_element_before(sz_cs, *_RPR_AFTER_SZCS)
    sz_cs.set(qn("w:val"), str(size * 2))

    if contains_rtl(run.text):
        font.rtl = True
        font.complex_script = True


def set_table_rtl(table) -> None:
    """Lay a table out right-to-left (first column on the right)."""
    tbl_pr = table._tbl.tblPr
    if tbl_pr.find(qn("w:bidiVisual")) is None:
        tbl_pr.insert_element_before(OxmlElement("w:bidiVisual"), *_TBLPR_AFTER_BIDI)


def remove_table_borders(table) -> None:
    """Hide every border of a table."""
    tbl_pr = table._tbl.tblPr
    existing = tbl_pr.find(qn("w:tblBorders"))
    if existing is not None:
        tbl_pr.remove(existing)

    borders = OxmlElement("w:tblBorders")
    for edge in BORDER_EDGES:
        border = etree.SubElement(borders, qn(f"w:{edge}"))
        border.set(qn("w:val"), "nil")
    tbl_pr.insert_element_before(borders, *_TBLPR_AFTER_BORDERS)


def set_section_rtl(section) -> None:
    """Mark a section right-to-left."""
    sect_pr = section._sectPr
    if sect_pr.find(qn("w:bidi")) is None:
        sect_pr.insert_element_before(OxmlElement("w:bidi"), *_SECTPR_AFTER_BIDI)


def set_cell_shading(cell, fill_hex: str) -> None:
    """Set background shading on a table cell."""
    tc_pr = cell._element.get_or_add_tcPr()
    shading = etree.SubElement(tc_pr, qn("w:shd"))
    shading.set(qn("w:fill"), fill_hex)
    shading.set(qn("w:val"), "clear")


def add_page_number_field(paragraph, font_name: str, size: int) -> None:
    """Append a PAGE field that Word fills with the current page number."""
    field = etree.SubElement(paragraph._p, qn("w:fldSimple"))
    field.set(qn("w:instr"), "PAGE")
    run = etree.SubElement(field, qn("w:r"))
    r_pr = etree.SubElement(run, qn("w:rPr"))
    fonts = etree.SubElement(r_pr, qn("w:rFonts"))
    for attribute in ("w:ascii", "w:hAnsi", "w:cs"):
        fonts.set(qn(attribute), font_name)
    etree.SubElement(r_pr, qn("w:sz")).set(qn("w:val"), str(size * 2))
    etree.SubElement(r_pr, qn("w:szCs")).set(qn("w:val"), str(size * 2))
    text = etree.SubElement(run, qn("w:t"))
    text.text = "1"


HEADING_COLOR = RGBColor(0x36, 0x5F, 0x91)
TITLE_COLOR = RGBColor(0x2E, 0x74, 0xB5)
MUTED_COLOR = RGBColor(0x66, 0x66, 0x66)
