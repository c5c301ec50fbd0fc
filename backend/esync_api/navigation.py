"""
eSync+ API — Application Modules and Sidebar Options
=====================================================

What:  The fixed registry of navigable console modules, plus the option
       lists a sidebar separator may use.
Who:   Sidebar service (derives menu links from module ids) and the
       GET /api/app-modules route.
"""

from typing import Dict, List, NamedTuple, Optional


class AppModule(NamedTuple):
    id: str
    label: str
    path: str


APP_MODULES: List[AppModule] = [
    AppModule("home", "home", "/"),
    AppModule("products", "products", "/products"),
    AppModule("parametreler", "parameters", "/parametreler"),
    AppModule("parametreler-markalar", "parameters › brands", "/parametreler/markalar"),
    AppModule("parametreler-birimler", "parameters › units", "/parametreler/birimler"),
    AppModule("parametreler-gruplar", "parameters › groups", "/parametreler/gruplar"),
    AppModule("parametreler-kategoriler", "parameters › categories", "/parametreler/kategoriler"),
    AppModule("parametreler-urun-tipleri", "parameters › product-types", "/parametreler/urun-tipleri"),
    AppModule("parametreler-para-birimleri", "parameters › currencies", "/parametreler/para-birimleri"),
    AppModule("parametreler-vergi-oranlari", "parameters › tax-rates", "/parametreler/vergi-oranlari"),
    AppModule("parametreler-musteri-tipleri", "parameters › customer-types", "/parametreler/musteri-tipleri"),
    AppModule("ayarlar", "settings", "/ayarlar"),
    AppModule("ayarlar-genel", "settings › general", "/ayarlar/genel"),
    AppModule("ayarlar-veritabani", "settings › database", "/ayarlar/veritabani"),
    AppModule("ayarlar-depolama", "settings › storage", "/ayarlar/depolama"),
    AppModule("ayarlar-entegrasyonlar", "settings › integrations", "/ayarlar/entegrasyonlar"),
    AppModule("ayarlar-hesaplamalar", "settings › calculations", "/ayarlar/hesaplamalar"),
    AppModule("ayarlar-erisim", "settings › access", "/ayarlar/erisim"),
    AppModule("ayarlar-tedarikciler", "settings › suppliers", "/ayarlar/tedarikciler"),
    AppModule("ayarlar-veri-aktarimi", "settings › data-transfer", "/ayarlar/veri-aktarimi"),
]

_MODULES_BY_ID: Dict[str, AppModule] = {m.id: m for m in APP_MODULES}

# Separator appearance options (id -> css class / px)
SEPARATOR_COLORS: Dict[str, str] = {
    "border": "border-border",
    "primary": "border-primary",
    "orange": "border-orange-500",
    "muted": "border-muted-foreground/50",
    "destructive": "border-destructive",
}
SEPARATOR_THICKNESSES = (1, 2, 4)

DEFAULT_SIDEBAR_TITLE = "eSync+"


def get_module_by_id(module_id: str) -> Optional[AppModule]:
    return _MODULES_BY_ID.get(module_id)


def get_module_path(module_id: Optional[str], fallback_link: str) -> str:
    """Module path when the module exists, else the fallback link."""
    if not module_id:
        return fallback_link
    module = get_module_by_id(module_id)
    return module.path if module else fallback_link
