"""Academic reference data: schools, the programs they teach, and years."""

SCHOOLS = {
    "EGEI": [
        "Électronique",
        "Génie Télécoms et TIC",
        "Informatique Industrielle et Maintenance",
        "Electrotechnique",
    ],
    "ESMEA": [
        "Assurances",
        "Banque et Finance d'Entreprise",
        "Audit et Contrôle de Gestion",
        "Management des Ressources Humaines",
        "Action Commerciale et Force de Vente",
        "Communication et Action Publicitaire",
        "Commerce",
        "Informatique de Gestion",
        "Transport et Logistique",
    ],
    "FSAE": [
        "Gestion de l'Environnement et Aménagement du Territoire",
        "Production et Gestion des Ressources Animales",
        "Sciences et Techniques de Production Végétale",
        "Stockage Conservation et Conditionnement des Produits Agricoles",
        "Gestion des Entreprises Rurales et Agricoles",
    ],
    "FDE": [
        "Droit",
        "Economie",
    ],
}

YEARS = [1, 2, 3]

_PROGRAM_TO_SCHOOL = {
    program: school for school, programs in SCHOOLS.items() for program in programs
}


def all_programs():
    return [program for programs in SCHOOLS.values() for program in programs]


def school_for_program(program):
    if not program:
        return None
    return _PROGRAM_TO_SCHOOL.get(program)


def validate_student_data(program=None, year=None, school=None):
    errors = []

    if program and program not in _PROGRAM_TO_SCHOOL:
        errors.append(f"Filière invalide : {program}")

    if school and school not in SCHOOLS:
        errors.append(f"École invalide : {school}")

    if year is not None and year != "":
        try:
            year_value = int(year)
        except (TypeError, ValueError):
            year_value = None
        if year_value not in YEARS:
            errors.append(f"Année invalide : {year}")

    if program and school and program in _PROGRAM_TO_SCHOOL:
        if _PROGRAM_TO_SCHOOL[program] != school:
            errors.append(f"La filière {program} n'appartient pas à l'école {school}")

    return errors
