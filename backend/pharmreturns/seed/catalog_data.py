"""Bundled NDC product catalog with return-credit policies."""

from decimal import Decimal

# ──────────────────────────────────────────────
# NDC product directory (normalized 5-4-2 NDCs)
# ──────────────────────────────────────────────
NDC_PRODUCTS = [
    # Over-the-counter
    {"ndc": "69618-0010-01", "proprietary_name": "Tylenol", "nonproprietary_name": "acetaminophen", "dosage_form": "TABLET", "strength": "325 mg", "manufacturer_name": "McNeil Consumer Healthcare", "wac": Decimal("0.12"), "credit_percentage": 85},
    {"ndc": "00573-0201-30", "proprietary_name": "Advil", "nonproprietary_name": "ibuprofen", "dosage_form": "TABLET, FILM COATED", "strength": "200 mg", "manufacturer_name": "Pfizer", "wac": Decimal("0.18"), "credit_percentage": 85},
    {"ndc": "00113-0912-71", "proprietary_name": "Prilosec OTC", "nonproprietary_name": "omeprazole", "dosage_form": "TABLET, DELAYED RELEASE", "strength": "20 mg", "manufacturer_name": "Procter & Gamble", "wac": Decimal("0.95"), "credit_percentage": 85},
    {"ndc": "00045-5010-30", "proprietary_name": "Claritin", "nonproprietary_name": "loratadine", "dosage_form": "TABLET", "strength": "10 mg", "manufacturer_name": "Schering", "wac": Decimal("0.65"), "credit_percentage": 85},
    # Prescription, non-controlled
    {"ndc": "00093-2263-01", "proprietary_name": None, "nonproprietary_name": "amoxicillin", "dosage_form": "CAPSULE", "strength": "500 mg", "manufacturer_name": "Teva", "wac": Decimal("0.25"), "credit_percentage": 100},
    {"ndc": "00006-0019-58", "proprietary_name": "Prinivil", "nonproprietary_name": "lisinopril", "dosage_form": "TABLET", "strength": "10 mg", "manufacturer_name": "Merck", "wac": Decimal("0.28"), "credit_percentage": 100},
    {"ndc": "00093-7214-01", "proprietary_name": None, "nonproprietary_name": "metformin hydrochloride", "dosage_form": "TABLET", "strength": "500 mg", "manufacturer_name": "Teva", "wac": Decimal("0.15"), "credit_percentage": 100},
    {"ndc": "00071-0156-23", "proprietary_name": "Lipitor", "nonproprietary_name": "atorvastatin calcium", "dosage_form": "TABLET, FILM COATED", "strength": "20 mg", "manufacturer_name": "Pfizer", "wac": Decimal("5.50"), "credit_percentage": 100},
    # Controlled substances: destruction only, no credit
    {"ndc": "00009-0029-01", "proprietary_name": "Xanax", "nonproprietary_name": "alprazolam", "dosage_form": "TABLET", "strength": "0.5 mg", "manufacturer_name": "Pfizer", "wac": Decimal("1.20"), "dea_schedule": "CIV", "credit_percentage": 0, "destruction_required": True},
    {"ndc": "00406-8530-01", "proprietary_name": None, "nonproprietary_name": "oxycodone hydrochloride", "dosage_form": "TABLET", "strength": "5 mg", "manufacturer_name": "Mallinckrodt", "wac": Decimal("2.50"), "dea_schedule": "CII", "credit_percentage": 0, "destruction_required": True, "requires_dea_form": True},
    {"ndc": "00406-0125-01", "proprietary_name": "Hydrocodone/APAP", "nonproprietary_name": "hydrocodone bitartrate and acetaminophen", "dosage_form": "TABLET", "strength": "5 mg/325 mg", "manufacturer_name": "Mallinckrodt", "wac": Decimal("1.85"), "dea_schedule": "CII", "credit_percentage": 0, "destruction_required": True, "requires_dea_form": True},
    {"ndc": "00555-0787-02", "proprietary_name": "Adderall XR", "nonproprietary_name": "dextroamphetamine saccharate, amphetamine aspartate, dextroamphetamine sulfate, and amphetamine sulfate", "dosage_form": "CAPSULE, EXTENDED RELEASE", "strength": "20 mg", "manufacturer_name": "Barr Labs", "wac": Decimal("4.20"), "dea_schedule": "CII", "credit_percentage": 0, "destruction_required": True, "requires_dea_form": True},
]

# Set defaults for optional fields
for product in NDC_PRODUCTS:
    product.setdefault("dea_schedule", None)
    product.setdefault("return_eligible", True)
    product.setdefault("return_window", 180)
    product.setdefault("requires_dea_form", False)
    product.setdefault("destruction_required", False)
