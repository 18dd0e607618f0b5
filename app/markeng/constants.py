"""
Central constants for the sales hub: enumerations shared by models, forms and importers.
"""
from __future__ import annotations

SYSTEM_NAME = "Mark-Eng Sales Hub"
SYSTEM_VERSION = "2.4.0"

# Pricing technologies, in display order.
TECH_SLS_PA2200 = "SLS Nylon PA2200"
TECH_SLS_PA3200 = "SLS PA3200"
TECH_MJF_PA12 = "MJF Nylon PA12"
TECH_SLA_ABS = "SLA ABS"
TECH_SLA_TRANS = "SLA Transparent"
TECH_FDM_TPU = "FDM TPU"
TECH_FDM_ABS = "FDM ABS"
TECH_FDM_PLA = "FDM PLA"
TECH_FDM_CF = "FDM Carbon Fibre"
TECH_CNC_VMC = "CNC / VMC Machining"
TECH_METAL_3D = "Metal 3D Printing"
TECH_VACUUM_CAST = "Vacuum Casting"

TECH_CATEGORIES = (
    TECH_SLS_PA2200,
    TECH_SLS_PA3200,
    TECH_MJF_PA12,
    TECH_SLA_ABS,
    TECH_SLA_TRANS,
    TECH_FDM_TPU,
    TECH_FDM_ABS,
    TECH_FDM_PLA,
    TECH_FDM_CF,
    TECH_CNC_VMC,
    TECH_METAL_3D,
    TECH_VACUUM_CAST,
)


def normalize_tech_category(value: str | None) -> str:
    """
    Map free text ("sls pa 2200 white", "VMC job") onto a pricing technology.
    Rules are checked in order; the first hit wins and FDM PLA is the fallback.
    """
    search = (value or "").lower().strip()
    if search in (t.lower() for t in TECH_CATEGORIES):
        return next(t for t in TECH_CATEGORIES if t.lower() == search)
    if "pa2200" in search:
        return TECH_SLS_PA2200
    if "pa3200" in search:
        return TECH_SLS_PA3200
    if "mjf" in search or "pa12" in search:
        return TECH_MJF_PA12
    if "sla" in search and "abs" in search:
        return TECH_SLA_ABS
    if "transparent" in search:
        return TECH_SLA_TRANS
    if "tpu" in search:
        return TECH_FDM_TPU
    if "carbon" in search:
        return TECH_FDM_CF
    if "fdm" in search and "abs" in search:
        return TECH_FDM_ABS
    if "pla" in search:
        return TECH_FDM_PLA
    if "cnc" in search or "vmc" in search:
        return TECH_CNC_VMC
    if "metal" in search:
        return TECH_METAL_3D
    if "vacuum" in search or "casting" in search:
        return TECH_VACUUM_CAST
    return TECH_FDM_PLA


ZONE_ALL = "All Zones"
ZONES = (ZONE_ALL, "North", "South", "East", "West", "Central")
ZONE_OTHER = "Other"

CUSTOMER_STATUSES = ("Open", "Closed")
INDUSTRY_TYPES = ("Mechanical", "Automotive", "Fabrication", "Tool & Die", "Other")
COMPANY_SIZES = ("Small", "Medium", "Large")

PRICING_STATUSES = ("Draft", "Sent to Client", "Approved", "Rejected", "Revised")
PRICING_UNITS = ("gram", "cc", "piece", "hour", "Project")

EXPO_STATUSES = ("upcoming", "live", "Completed", "canceled")
EXPO_PARTICIPATION_TYPES = ("Visitor", "Exhibitor")
EXPO_REGISTRATION_STATUSES = ("Applied", "Confirmed")
EXPO_DOCUMENT_FIELDS = {
    "brochure": "brochure_link",
    "entry_pass": "entry_pass_link",
    "stall_layout": "stall_layout_link",
    "photos": "photos_link",
    "visitor_list": "visitor_list_link",
}

VISIT_STATUSES = ("Planned", "Completed", "Cancelled", "Rescheduled")
VISIT_PAYMENT_STATUSES = ("Received", "Pending", "Not Discussed")
VISIT_CHECKLIST_ITEMS = ("quotation", "samples", "pricing", "technical")

PROJECT_TYPES = ("IN_HOUSE", "VENDOR")
PROJECT_STATUSES = ("Active", "Completed", "On Hold")
VENDOR_TYPES = ("CNC", "Fabrication", "Casting", "Painting", "Electrical")
PAYMENT_MODES = ("Cash", "Bank", "UPI")
RATE_TYPES = ("Per Piece", "Job Work", "Hourly")
EXPENSE_CATEGORIES = ("Raw Material", "Labor", "Machine", "Maintenance", "Power", "Utility", "Other")
EXPENSE_STATUSES = ("Pending", "Approved", "Rejected")
INCOME_STATUSES = ("Pending", "Received")
DOCUMENT_CATEGORIES = (
    "Client PO",
    "Vendor PO",
    "Vendor Invoice",
    "Client Invoice",
    "Delivery Challan",
    "Agreement / NDA",
    "Other",
)
DOCUMENT_TAGS = ("Client", "Vendor", "Internal")
ACTIVITY_TYPES = (
    "VENDOR_ASSIGNED",
    "PAYMENT_UPDATED",
    "COST_CHANGED",
    "STATUS_UPDATED",
    "DOCUMENT_ADDED",
    "PROJECT_CREATED",
)

SYSTEM_ADMIN_ROLE = "System Administrator"

DEFAULT_TEAM = (
    {
        "name": "Shreeya Anand",
        "role": "Marketing Lead",
        "email": "shreeya.anand@markeng.com",
        "phone": "+91 98765 43210",
        "bio": "Specializes in additive manufacturing market penetration and B2B brand strategy.",
    },
    {
        "name": "Mr. Bharat",
        "role": SYSTEM_ADMIN_ROLE,
        "email": "bharat.anand@markeng.com",
        "phone": "+91 98765 43211",
        "bio": "Oversees organizational operations and strategic technological integrations.",
    },
    {
        "name": "Salil Anand",
        "role": SYSTEM_ADMIN_ROLE,
        "email": "salil.anand@markeng.com",
        "phone": "+91 98765 43212",
        "bio": "Digital transformation expert focusing on sales automation and cloud infrastructure.",
    },
    {
        "name": "Rohit Verma",
        "role": "Growth Lead",
        "email": "rohit.verma@markeng.com",
        "phone": "+91 98765 43213",
        "bio": "Driving customer acquisition and expansion in the Tier-1 automotive and aerospace sectors.",
    },
    {
        "name": "Shubham Kumar",
        "role": "Market Analyst",
        "email": "shubham.kumar@markeng.com",
        "phone": "+91 98765 43214",
        "bio": "Deep-dives into manufacturing trends and pricing variance across Indian industrial clusters.",
    },
)
