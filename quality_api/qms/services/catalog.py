"""
Static registry of the plant's quality forms and control flows.

Every quality screen is the same list/detail/form over one collection; the
entries below describe which collection, which defaults a new record starts
with, and where the form sits in the powder or liquid control sequence.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from qms.core.errors import NotFoundError

FlowType = Literal["powder", "liquid"]


class QualityForm(BaseModel):
    """A quality form type and the collection backing it."""
    form_type: str = Field(..., description="Form type key used in URLs")
    collection: str = Field(..., description="Document collection name")
    title: str = Field(..., description="Display title")
    path: str = Field(..., description="UI route of the form list")
    flow: Literal["powder", "liquid", "shared"] = Field(..., description="Production line the form belongs to")
    section: Literal["quality", "pcc"] = Field("quality", description="UI section grouping")

    @property
    def is_hygiene(self) -> bool:
        return self.form_type.startswith("hygiene")

    @property
    def is_liquids(self) -> bool:
        return "liquids" in self.form_type


class FlowModule(BaseModel):
    """One step of the sequential quality control flow."""
    id: str
    href: str
    title: str
    description: str
    collection_names: List[str]
    type: FlowType


class PccTab(BaseModel):
    """A tab of the PCC section."""
    href: str
    label: str
    collection_name: str


class PrintModule(BaseModel):
    """A section of the printed quality cycle."""
    id: str
    title: str
    collection_names: List[str]
    production_type: Optional[FlowType] = None


class ReportableModule(BaseModel):
    """A collection that can be filtered and exported in reports."""
    value: str
    label: str


def _form(form_type: str, collection: str, title: str, path: str, flow: str, section: str = "quality") -> QualityForm:
    return QualityForm(form_type=form_type, collection=collection, title=title, path=path, flow=flow, section=section)


QUALITY_FORMS: Dict[str, QualityForm] = {
    f.form_type: f
    for f in [
        _form("luminometry", "quality_luminometry", "Luminometría (Polvos)", "/quality/luminometry/powders", "powder"),
        _form("luminometry-liquids", "quality_luminometry_liquids", "Luminometría (Líquidos)", "/quality/luminometry/liquids", "liquid"),
        _form("sensory", "quality_sensory", "Análisis Sensorial", "/quality/sensory", "shared"),
        _form("in-process", "quality_in_process", "Control en Proceso", "/quality/in-process/powders", "powder"),
        _form("in-process-liquids", "quality_in_process_liquids", "Control en Proceso para Líquidos", "/quality/in-process/liquids", "liquid"),
        _form("finished-product", "quality_finished_product", "Envasado y Empaque", "/quality/finished-product", "shared"),
        _form("final-bulk-inspection", "quality_final_bulk_inspection", "Inspección del Bulto Final", "/quality/final-bulk-inspection", "powder"),
        _form("endowment", "endowment", "Control de Dotación del Personal", "/pcc/endowment", "shared", "pcc"),
        _form("pcc", "pcc", "Inspección de Puntos Críticos de Control (PCC)", "/pcc/inspection", "powder", "pcc"),
        _form("pcc_liquids", "pcc_liquids", "Inspección PCC (Inicio Fabricación)", "/quality/pcc-liquids", "liquid", "pcc"),
        _form("pcc-final-inspection", "quality_pcc_final_inspection", "Inspección PCC (Final)", "/pcc/final-inspection", "shared", "pcc"),
        _form("scales", "scales", "Verificación de Básculas (Polvos)", "/quality/scales/powders", "powder"),
        _form("scales-liquids", "scales-liquids", "Verificación de Básculas (Líquidos)", "/quality/scales/liquids", "liquid"),
        _form("utensils", "utensils", "Control de Utensilios", "/pcc/utensils", "powder", "pcc"),
        _form("utensils-liquids", "utensils_liquids", "Inspección de Utensilios y Artículos", "/quality/utensils-liquids", "liquid", "pcc"),
        _form("magnet-inspection", "quality_magnet_inspection", "Inspección de Imán", "/pcc/magnet-inspection", "powder", "pcc"),
        _form("attribute-release", "quality_attribute_release", "Liberación por Atributos", "/quality/attribute-release", "shared"),
        _form("weighing", "weighing", "Control de Pesaje", "/quality/weighing", "shared"),
        _form("temp-humidity", "quality_temp_humidity", "Temperatura y Humedad", "/quality/temp-humidity", "shared"),
        _form("area-clearance-powders", "quality_area_clearance_powders", "Despeje de Área para Polvos", "/quality/area-clearance/powders", "powder"),
        _form("area-clearance-liquids", "quality_area_clearance_liquids", "Despeje de Área para Líquidos", "/quality/area-clearance/liquids", "liquid"),
        _form("hygiene", "hygiene", "Higiene y Saneamiento (Polvos)", "/quality/hygiene/powders", "powder"),
        _form("hygiene_liquids", "hygiene_liquids", "Higiene y Saneamiento (Líquidos)", "/quality/hygiene/liquids", "liquid"),
    ]
}


# PUBLIC_INTERFACE
def get_quality_form(form_type: str) -> QualityForm:
    """Look up a form type; raises NotFoundError for unknown keys."""
    form = QUALITY_FORMS.get(form_type)
    if form is None:
        raise NotFoundError(f"Unknown quality form type '{form_type}'")
    return form


# New-record defaults per form type.

LUMINOMETRY_ITEMS_POWDERS = [
    {"name": "Imán (Cuando aplique)"},
    {"name": "Mezclador"},
    {"name": "Salida del mezclador"},
    {"name": "Malla y zaranda"},
    {"name": "Manguera de descarga"},
    {"name": "Utensilios"},
    {"name": "Otro (EQUIPOS DE ENSAYO)"},
    {"name": "Otro"},
    {"name": "Otro:"},
]

LUMINOMETRY_ITEMS_LIQUIDS = [
    {"name": name, "sensoryInspection": "Cumple", "allergenInspection": "Cumple"}
    for name in (
        "Tanque de pre-mezcla",
        "Tanque de mezcla",
        "Filtro",
        "Tanque de balance",
        "Tubería - Bombas",
        "Tanque de envasado",
        "Mangueras",
        "Utensilios",
        "Otro:(EQUIPOS DE ENSAYO)",
        "Otro",
    )
]

SCALES_TEMPLATE: Dict[str, Any] = {"equipmentDetails": [], "testRows": []}

MAGNET_INSPECTION_TEMPLATE: Dict[str, Any] = {
    "magnetState": "SI",
    "freeOfParticles": "SI",
    "findings": [],
    "temperature": None,
    "humidity": None,
    "reviewedBy": "",
    "signatures": [
        {"role": "Operario de Pesaje"},
        {"role": "Operario de Fabricación"},
        {"role": "Operario de Envasado"},
        {"role": "Operario Encargado del PCC"},
        {"role": "VoBo Supervisión de Planta"},
        {"role": "VoBo Jefe de Producción"},
    ],
}

ATTRIBUTE_RELEASE_TEMPLATE: Dict[str, Any] = {
    "attributeRelease": {"packaging": {}, "packing": {}, "identification": {}, "hermeticity": {}},
    "releaseDate": "",
    "releasedBy": "",
    "observations": "",
}

IN_PROCESS_LIQUIDS_TEMPLATE: Dict[str, Any] = {
    "drumsSampled": 0,
    "referenceLot": "",
    "inProcessAppearance": "Cumple",
    "rawMaterialMonitoring": {},
    "inProcessTable": [
        {"parameter": "AVAL"},
        {"parameter": "INICIO"},
        {"parameter": "MEDIO"},
        {"parameter": "FINAL"},
    ],
}


def _checklist(names: List[str]) -> List[Dict[str, Any]]:
    return [{"name": n, "status": "SI", "reviewedBy": ""} for n in names]


AREA_CLEARANCE_POWDERS_TEMPLATE: Dict[str, Any] = {
    "hygienicInspection": _checklist([
        "Pisos, plataformas, escaleras",
        "Mesones, instrumentos de medida",
        "Imán (Cuando aplique)",
        "Mezclador de cintas",
        "Cosedora",
        "Válvulas, Ductos",
        "Pulsadores, Utensilios",
        "Estibas",
        "Etiquetas (Legibles, información conforme al producto a procesar)",
        "Empaque (Libre de material Extraño, sin perforación, sin manchas, buen estado)",
    ]),
    "equipmentVerification": _checklist([
        "Balanza TEK B12. Capacidad 150 kg",
        "Balanza TEK B8. Capacidad 150 kg",
        "Bascula BBG B27. Capacidad 3 Kg",
        "Determidador de Humedad AND DH-29-01 Capacidad 51 g",
        "Mezclador de cintas(verifique parte interna)",
        "Zaranda",
        "Termohigrometro",
        "Cosedora (Aguja y partes moviles completas, en buen estado)",
        "Extractor encendido",
        "Otros:",
    ]),
    "status": "Conforme",
    "zoneCode": "",
}

AREA_CLEARANCE_LIQUIDS_TEMPLATE: Dict[str, Any] = {
    "hygienicInspection": {
        "pisos_plataformas_escaleras": "C",
        "mesones_instrumentos_de_medida": "C",
        "tanques_tapas_agitadores": "C",
        "tuberias_valvulas_empaues_mangueras": "C",
        "filtro": "C",
        "utensilios": "C",
        "estibas": "C",
        "etiquetas_legibles_informacion_conforme": "C",
        "empaque_libre_de_material_extrano": "C",
    },
    "equipmentVerification": {
        "balanza_lexus_b19_100kg": "C",
        "balanza_lexus_b17_30kg": "C",
        "agitadores_verifique_parte_interna": "C",
        "bombas": "C",
        "refractometro_atago_pal_2": "C",
        "ph_metro": "NA",
        "balanza_and_capacidad_3100g": "C",
        "termohigrometro": "NA",
        "herramientas_de_tapado_greiff": "NA",
    },
    "status": "Conforme",
}

ENDOWMENT_ITEMS = [
    {"name": "Dotación completa (uniforme, cofias, botas, guantes, tapabocas), BPM", "status": "Conforme"},
    {
        "name": (
            "Elementos de protección individual (monogafas, tapaoídos, guantes, tapabocas, "
            "tapaoídos de copa, protección respiratoria)"
        ),
        "status": "Conforme",
    },
]


# PUBLIC_INTERFACE
def form_template(form_type: str, user_name: str, today: str, now_hhmm: str) -> Dict[str, Any]:
    """
    Return the form-specific defaults for a new record.

    Values are deep copies, so callers may mutate them freely.
    """
    name = user_name or ""
    if form_type == "luminometry":
        return {"luminometryItems": [{**i, "reviewedBy": name} for i in copy.deepcopy(LUMINOMETRY_ITEMS_POWDERS)]}
    if form_type == "luminometry-liquids":
        return {"luminometryItems": [{**i, "reviewedBy": name} for i in copy.deepcopy(LUMINOMETRY_ITEMS_LIQUIDS)]}
    if form_type == "endowment":
        return {"endowmentItems": copy.deepcopy(ENDOWMENT_ITEMS), "reviewedBy": name}
    if form_type == "pcc":
        return {
            "tamizId": {"letters": "", "zone": "", "mesh": "", "letter": ""},
            "zarandaId": {"letters": "", "zone": "", "number": ""},
        }
    if form_type == "pcc_liquids":
        return {
            "filterId": {"letters": "", "zone": "", "mesh": "", "letter": "", "lid": ""},
            "filterMeshState": "SI",
            "foreignParticlesBefore": "NO",
        }
    if form_type in ("scales", "scales-liquids"):
        return copy.deepcopy(SCALES_TEMPLATE)
    if form_type == "finished-product":
        return {
            "packagingStartTime": now_hhmm,
            "packagingRegisteredBy": name,
            "packagingSeries": [{"initial": "", "final": ""}],
        }
    if form_type == "final-bulk-inspection":
        return {
            "finalPackageInspection_freeOfForeignMaterial": "SI",
            "finalPackageInspection_registeredBy": name,
            "freeOfForeignMaterial": "SI",
        }
    if form_type == "magnet-inspection":
        return copy.deepcopy(MAGNET_INSPECTION_TEMPLATE)
    if form_type == "attribute-release":
        return {**copy.deepcopy(ATTRIBUTE_RELEASE_TEMPLATE), "releaseDate": today, "releasedBy": name}
    if form_type == "in-process-liquids":
        return copy.deepcopy(IN_PROCESS_LIQUIDS_TEMPLATE)
    if form_type == "in-process":
        return {"inProcessStatus": "Conforme"}
    if form_type == "weighing":
        return {"weighingTime": ""}
    if form_type == "temp-humidity":
        return {"tempHumidityReviewedBy": name}
    if form_type == "area-clearance-powders":
        return copy.deepcopy(AREA_CLEARANCE_POWDERS_TEMPLATE)
    if form_type == "area-clearance-liquids":
        return copy.deepcopy(AREA_CLEARANCE_LIQUIDS_TEMPLATE)
    if form_type == "pcc-final-inspection":
        return {"status": "Conforme", "retainedIsFromProduct": "NO", "tamizInGoodState": "SI"}
    if form_type == "utensils-liquids":
        return {"checklistCompleted": "SI", "reviewedBy": name}
    return {}


# Sequential control flows.

FLOW_MODULES: List[FlowModule] = [
    FlowModule(**m)
    for m in [
        # Powder line
        {"id": "hygiene_powders", "href": "/quality/hygiene/powders", "title": "Higiene y Saneamiento", "description": "Registro y verificación de limpieza.", "collection_names": ["hygiene"], "type": "powder"},
        {"id": "luminometry_powders", "href": "/quality/luminometry/powders", "title": "Luminometría", "description": "Medición para polvos.", "collection_names": ["quality_luminometry"], "type": "powder"},
        {"id": "area_clearance_powders", "href": "/quality/area-clearance/powders", "title": "Despeje de Área", "description": "Verificación para polvos.", "collection_names": ["quality_area_clearance_powders"], "type": "powder"},
        {"id": "scales_powders", "href": "/quality/scales/powders", "title": "Verificación de Básculas", "description": "Pruebas para básculas de polvos.", "collection_names": ["scales"], "type": "powder"},
        {"id": "utensils_powders", "href": "/pcc/utensils", "title": "Inspección de Utensilios", "description": "Registro de entrada y salida de utensilios.", "collection_names": ["utensils"], "type": "powder"},
        {"id": "pcc_powders", "href": "/pcc/inspection", "title": "Inspección PCC (Inicio)", "description": "Verificación de mallas y filtros al inicio.", "collection_names": ["pcc"], "type": "powder"},
        {"id": "temp-humidity_powders", "href": "/quality/temp-humidity", "title": "Temperatura y Humedad", "description": "Condiciones ambientales del área.", "collection_names": ["quality_temp_humidity"], "type": "powder"},
        {"id": "in-process_powders", "href": "/quality/in-process/powders", "title": "Control en Proceso", "description": "Muestreo durante producción de polvos.", "collection_names": ["quality_in_process"], "type": "powder"},
        {"id": "finished-product_powders", "href": "/quality/finished-product", "title": "Envasado y Empaque", "description": "Aprobación y registro de envasado.", "collection_names": ["quality_finished_product"], "type": "powder"},
        {"id": "final-bulk-inspection_powders", "href": "/quality/final-bulk-inspection", "title": "Inspección del Bulto Final", "description": "Inspección final del bulto (saldo).", "collection_names": ["quality_final_bulk_inspection"], "type": "powder"},
        {"id": "pcc_final_inspection_powders", "href": "/pcc/final-inspection", "title": "Inspección PCC (Final)", "description": "Verificación de PCC al final.", "collection_names": ["quality_pcc_final_inspection"], "type": "powder"},
        {"id": "magnet-inspection_powders", "href": "/pcc/magnet-inspection", "title": "Inspección de Imán (Final)", "description": "Revisión de imán al final de fabricación.", "collection_names": ["quality_magnet_inspection"], "type": "powder"},
        {"id": "attribute-release_powders", "href": "/quality/attribute-release", "title": "Liberación por Atributos", "description": "Verificación final de envasado y embalaje.", "collection_names": ["quality_attribute_release"], "type": "powder"},
        {"id": "weighing_powders", "href": "/quality/weighing", "title": "Pesaje", "description": "Control de pesaje en proceso.", "collection_names": ["weighing"], "type": "powder"},
        # Liquid line
        {"id": "hygiene_liquids", "href": "/quality/hygiene/liquids", "title": "Higiene y Saneamiento", "description": "Registro y verificación de limpieza.", "collection_names": ["hygiene_liquids"], "type": "liquid"},
        {"id": "luminometry_liquids", "href": "/quality/luminometry/liquids", "title": "Luminometría", "description": "Medición para líquidos.", "collection_names": ["quality_luminometry_liquids"], "type": "liquid"},
        {"id": "area_clearance_liquids", "href": "/quality/area-clearance/liquids", "title": "Despeje de Área", "description": "Verificación para líquidos.", "collection_names": ["quality_area_clearance_liquids"], "type": "liquid"},
        {"id": "scales_liquids", "href": "/quality/scales/liquids", "title": "Verificación de Básculas", "description": "Pruebas para básculas de líquidos.", "collection_names": ["scales-liquids"], "type": "liquid"},
        {"id": "endowment_liquids", "href": "/pcc/endowment", "title": "Inspección de Operarios (EPP)", "description": "Verificación de Equipo de Protección Personal.", "collection_names": ["endowment"], "type": "liquid"},
        {"id": "utensils_liquids", "href": "/quality/utensils-liquids", "title": "Inspección de Utensilios y Artículos", "description": "Chequeo de utensilios para líquidos.", "collection_names": ["utensils_liquids"], "type": "liquid"},
        {"id": "pcc_liquids", "href": "/quality/pcc-liquids", "title": "Inspección PCC (Inicio)", "description": "Inspección de filtro al inicio de fabricación.", "collection_names": ["pcc_liquids"], "type": "liquid"},
        {"id": "temp-humidity_liquids", "href": "/quality/temp-humidity", "title": "Temperatura y Humedad", "description": "Condiciones ambientales del área.", "collection_names": ["quality_temp_humidity"], "type": "liquid"},
        {"id": "in-process_liquids", "href": "/quality/in-process/liquids", "title": "Control en Proceso", "description": "Muestreo durante producción de líquidos.", "collection_names": ["quality_in_process_liquids"], "type": "liquid"},
        {"id": "finished-product_liquids", "href": "/quality/finished-product", "title": "Envasado y Empaque", "description": "Aprobación y registro de envasado.", "collection_names": ["quality_finished_product"], "type": "liquid"},
        {"id": "pcc_final_inspection_liquids", "href": "/quality/final-bulk-inspection", "title": "Inspección PCC (Final)", "description": "Verificación de PCC al final.", "collection_names": ["quality_pcc_final_inspection"], "type": "liquid"},
        {"id": "attribute-release_liquids", "href": "/quality/attribute-release", "title": "Liberación por Atributos", "description": "Verificación final de envasado y embalaje.", "collection_names": ["quality_attribute_release"], "type": "liquid"},
        {"id": "weighing_liquids", "href": "/quality/weighing", "title": "Pesaje", "description": "Control de pesaje en proceso.", "collection_names": ["weighing"], "type": "liquid"},
    ]
]

# Collection holding manual unlock overrides, keyed by flow module id.
MODULE_OVERRIDES_COLLECTION = "module_overrides"


# PUBLIC_INTERFACE
def flow_modules(flow: str) -> List[FlowModule]:
    """Modules of the powder or liquid flow, in control order."""
    return [m for m in FLOW_MODULES if m.type == flow]


# PUBLIC_INTERFACE
def get_flow_module(module_id: str) -> FlowModule:
    for m in FLOW_MODULES:
        if m.id == module_id:
            return m
    raise NotFoundError(f"Unknown flow module '{module_id}'")


# PUBLIC_INTERFACE
def flow_collections(flow: str) -> List[str]:
    """Distinct collections covered by a flow, in module order."""
    return list(dict.fromkeys(c for m in flow_modules(flow) for c in m.collection_names))


PCC_TABS: List[PccTab] = [
    PccTab(href="/pcc/inspection", label="Inspección (Inicio)", collection_name="pcc"),
    PccTab(href="/pcc/endowment", label="Dotación", collection_name="endowment"),
    PccTab(href="/pcc/utensils", label="Utensilios", collection_name="utensils"),
    PccTab(href="/pcc/final-inspection", label="Inspección (Final)", collection_name="quality_pcc_final_inspection"),
    PccTab(href="/pcc/magnet-inspection", label="Inspección de Imán", collection_name="quality_magnet_inspection"),
]

PCC_APPROVAL_STATUSES = ["Conforme"]


PRINT_MODULES: List[PrintModule] = [
    PrintModule(id="hygiene", title="Higiene y Saneamiento", collection_names=["hygiene", "hygiene_liquids"]),
    PrintModule(id="luminometry", title="Luminometría", collection_names=["quality_luminometry", "quality_luminometry_liquids"]),
    PrintModule(id="area-clearance", title="Despeje de Área", collection_names=["quality_area_clearance_powders", "quality_area_clearance_liquids"]),
    PrintModule(id="scales", title="Verificación de Básculas", collection_names=["scales", "scales-liquids"]),
    PrintModule(id="endowment", title="Inspección de Operarios (EPP)", collection_names=["endowment"]),
    PrintModule(id="utensils", title="Inspección de Utensilios", collection_names=["utensils"]),
    PrintModule(id="pcc", title="Inspección PCC (Inicio)", collection_names=["pcc"]),
    PrintModule(id="temp-humidity", title="Temperatura y Humedad", collection_names=["quality_temp_humidity"]),
    PrintModule(id="production_liquids", title="Producción Líquidos", collection_names=["production"], production_type="liquid"),
    PrintModule(id="production_powders", title="Producción Polvos", collection_names=["production"], production_type="powder"),
    PrintModule(id="in-process", title="Control en Proceso", collection_names=["quality_in_process", "quality_in_process_liquids"]),
    PrintModule(id="weighing", title="Pesaje", collection_names=["weighing"]),
    PrintModule(id="finished_product", title="Envasado y Empaque", collection_names=["quality_finished_product"]),
    PrintModule(id="magnet_inspection", title="Inspección de Imán (Final)", collection_names=["quality_magnet_inspection"]),
    PrintModule(id="attribute_release", title="Liberación por Atributos", collection_names=["quality_attribute_release"]),
]


REPORTABLE_MODULES: List[ReportableModule] = [
    ReportableModule(value=v, label=label)
    for v, label in [
        ("production", "Producción"),
        ("users", "Usuarios"),
        ("hygiene", "Higiene (Polvos)"),
        ("hygiene_liquids", "Higiene (Líquidos)"),
        ("quality_luminometry", "Calidad - Luminometría (Polvos)"),
        ("quality_luminometry_liquids", "Calidad - Luminometría (Líquidos)"),
        ("quality_area_clearance_powders", "Calidad - Despeje Área (Polvos)"),
        ("quality_area_clearance_liquids", "Calidad - Despeje Área (Líquidos)"),
        ("scales", "Calidad - Básculas (Polvos)"),
        ("scales-liquids", "Calidad - Básculas (Líquidos)"),
        ("quality_in_process", "Calidad - En Proceso (Polvos)"),
        ("quality_in_process_liquids", "Calidad - En Proceso (Líquidos)"),
        ("quality_finished_product", "Calidad - Producto Terminado"),
        ("quality_attribute_release", "Calidad - Liberación Atributos"),
        ("weighing", "Calidad - Pesaje"),
        ("quality_temp_humidity", "Calidad - Temp. y Humedad"),
        ("endowment", "PCC - Dotación"),
        ("pcc", "PCC - Inspección (Inicio)"),
        ("pcc_liquids", "PCC - Inspección (Líquidos)"),
        ("utensils", "PCC - Utensilios (Polvos)"),
        ("utensils_liquids", "PCC - Utensilios (Líquidos)"),
        ("quality_pcc_final_inspection", "PCC - Inspección (Final)"),
        ("quality_magnet_inspection", "PCC - Inspección Imán"),
    ]
]


# PUBLIC_INTERFACE
def get_reportable_module(value: str) -> ReportableModule:
    for m in REPORTABLE_MODULES:
        if m.value == value:
            return m
    raise NotFoundError(f"Module '{value}' is not reportable")


# Quality dashboard: collection -> display label.
QUALITY_DASHBOARD_MODULES: Dict[str, str] = {
    "quality_luminometry": "Luminometría",
    "hygiene": "Higiene",
    "quality_area_clearance_powders": "Despeje Polvos",
    "pcc": "PCC",
    "quality_finished_product": "Producto Terminado",
}

# Administrator dashboard: collection -> activity module label.
ADMIN_MONITORED_COLLECTIONS: Dict[str, str] = {
    "quality_luminometry": "Calidad",
    "quality_sensory": "Calidad",
    "quality_area_inspection": "Calidad",
    "quality_in_process": "Calidad",
    "quality_finished_product": "Calidad",
    "endowment": "Dotación",
    "pcc": "PCC",
    "scales": "Calidad",
    "utensils": "PCC",
    "hygiene": "Higiene",
}
