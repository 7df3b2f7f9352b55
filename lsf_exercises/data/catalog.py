"""
Seed catalog of LSF concepts.

Used by the in-memory provider and to populate fresh SQL catalogs. Every
level from A1 to C2 is represented so each exercise type can be generated
at any difficulty.
"""

from __future__ import annotations

from typing import Any

from ..core.levels import CECRLLevel
from ..core.models import Concept, ConceptDetails

REGIONAL_VARIANTS = ("Paris", "Lyon", "Marseille")
DEFAULT_CONTEXTS = ("formel", "informel", "éducatif")

# Verbs get a different grammar note than nouns
_VERBS = {
    "apprendre", "comprendre", "expliquer", "manger", "negocier",
}

CONCEPT_RECORDS: list[dict[str, Any]] = [
    # ---- A1 ---------------------------------------------------------------
    {
        "id": "bonjour", "text": "Bonjour", "level": "A1",
        "categories": ["salutations", "politesse"], "related": ["au_revoir", "merci"],
        "difficulty": 0.10, "frequency": 100, "video": True,
        "explanation": "Salutation de base, main plate partant du menton vers l'avant.",
        "examples": ["Bonjour, comment ça va ?", "Bonjour à tous", "Dire bonjour au professeur"],
        "synonyms": ["Salut", "Coucou"],
    },
    {
        "id": "merci", "text": "Merci", "level": "A1",
        "categories": ["politesse"], "related": ["bonjour", "s_il_vous_plait"],
        "difficulty": 0.10, "frequency": 95, "video": True,
        "explanation": "Remerciement, main plate qui part des lèvres vers l'interlocuteur.",
        "examples": ["Merci beaucoup", "Merci pour ton aide", "Merci à vous"],
        "synonyms": ["Merci beaucoup"],
    },
    {
        "id": "s_il_vous_plait", "text": "S'il vous plaît", "level": "A1",
        "categories": ["politesse"], "related": ["merci"],
        "difficulty": 0.12, "frequency": 70, "video": True,
        "explanation": "Formule de politesse accompagnée d'une expression faciale sollicitante.",
        "examples": ["Un café, s'il vous plaît", "Aidez-moi, s'il vous plaît", "Répétez, s'il vous plaît"],
        "synonyms": ["S'il te plaît"],
    },
    {
        "id": "au_revoir", "text": "Au revoir", "level": "A1",
        "categories": ["salutations"], "related": ["bonjour"],
        "difficulty": 0.12, "frequency": 80, "video": True,
        "explanation": "Salutation de départ, main ouverte qui s'agite légèrement.",
        "examples": ["Au revoir et à demain", "Dire au revoir à la famille", "Au revoir, bonne journée"],
        "synonyms": ["À bientôt", "Salut"],
    },
    {
        "id": "oui", "text": "Oui", "level": "A1",
        "categories": ["base"], "related": ["non"],
        "difficulty": 0.05, "frequency": 90,
        "explanation": "Acquiescement, poing fermé qui hoche comme une tête.",
        "examples": ["Oui, je comprends", "Oui, d'accord", "Répondre oui"],
        "synonyms": ["D'accord"],
    },
    {
        "id": "non", "text": "Non", "level": "A1",
        "categories": ["base"], "related": ["oui"],
        "difficulty": 0.05, "frequency": 88,
        "explanation": "Négation, index tendu qui oscille de gauche à droite.",
        "examples": ["Non, merci", "Non, je ne sais pas", "Répondre non"],
        "synonyms": ["Pas du tout"],
    },
    {
        "id": "famille", "text": "Famille", "level": "A1",
        "categories": ["famille"], "related": ["maman", "papa"],
        "difficulty": 0.18, "frequency": 60, "video": True,
        "explanation": "Les deux mains en F décrivent un cercle qui réunit les membres.",
        "examples": ["Ma famille est grande", "Un repas de famille", "Présenter sa famille"],
        "synonyms": ["Les proches"],
    },
    {
        "id": "maman", "text": "Maman", "level": "A1",
        "categories": ["famille"], "related": ["papa", "famille"],
        "difficulty": 0.15, "frequency": 65, "video": True,
        "explanation": "Index qui touche la joue, signe affectueux de la mère.",
        "examples": ["Ma maman travaille", "Appeler maman", "Maman et papa"],
        "synonyms": ["Mère"],
    },
    {
        "id": "papa", "text": "Papa", "level": "A1",
        "categories": ["famille"], "related": ["maman", "famille"],
        "difficulty": 0.15, "frequency": 64, "video": True,
        "explanation": "Main en forme de moustache sous le nez.",
        "examples": ["Mon papa cuisine", "Papa arrive", "Jouer avec papa"],
        "synonyms": ["Père"],
    },
    {
        "id": "manger", "text": "Manger", "level": "A1",
        "categories": ["quotidien"], "related": ["maison"],
        "difficulty": 0.20, "frequency": 75,
        "explanation": "Doigts joints portés plusieurs fois vers la bouche.",
        "examples": ["Manger une pomme", "On va manger", "Manger ensemble"],
        "synonyms": ["Se nourrir"],
    },
    # ---- A2 ---------------------------------------------------------------
    {
        "id": "apprendre", "text": "Apprendre", "level": "A2",
        "categories": ["éducation"], "related": ["ecole", "comprendre"],
        "difficulty": 0.30, "frequency": 55, "video": True,
        "explanation": "La main prend l'information sur la paume et la porte au front.",
        "examples": ["Apprendre la LSF", "J'apprends vite", "Apprendre ensemble"],
        "synonyms": ["Étudier"],
    },
    {
        "id": "ecole", "text": "École", "level": "A2",
        "categories": ["éducation"], "related": ["apprendre", "ami"],
        "difficulty": 0.25, "frequency": 50,
        "explanation": "Les mains frappent deux fois l'une contre l'autre.",
        "examples": ["Aller à l'école", "Une école bilingue", "L'école est fermée"],
        "synonyms": ["Établissement scolaire"],
    },
    {
        "id": "maison", "text": "Maison", "level": "A2",
        "categories": ["quotidien"], "related": ["famille"],
        "difficulty": 0.22, "frequency": 58,
        "explanation": "Les mains dessinent le toit puis les murs.",
        "examples": ["Rentrer à la maison", "Une grande maison", "La maison de mes parents"],
        "synonyms": ["Domicile", "Logement"],
    },
    {
        "id": "travail", "text": "Travail", "level": "A2",
        "categories": ["quotidien", "travail"], "related": ["negocier"],
        "difficulty": 0.30, "frequency": 52,
        "explanation": "Les poings se frappent alternativement, geste de l'effort.",
        "examples": ["Aller au travail", "Un travail difficile", "Finir son travail"],
        "synonyms": ["Emploi", "Boulot"],
    },
    {
        "id": "ami", "text": "Ami", "level": "A2",
        "categories": ["relations"], "related": ["famille"],
        "difficulty": 0.24, "frequency": 57,
        "explanation": "Les index crochetés s'accrochent l'un à l'autre.",
        "examples": ["Mon meilleur ami", "Sortir entre amis", "Un ami sourd"],
        "synonyms": ["Copain", "Camarade"],
    },
    {
        "id": "demain", "text": "Demain", "level": "A2",
        "categories": ["temps"], "related": ["aujourd_hui"],
        "difficulty": 0.28, "frequency": 45,
        "explanation": "Le pouce part de la joue vers l'avant, le futur est devant soi.",
        "examples": ["À demain", "Demain matin", "Demain il fera beau"],
        "synonyms": ["Le lendemain"],
    },
    {
        "id": "aujourd_hui", "text": "Aujourd'hui", "level": "A2",
        "categories": ["temps"], "related": ["demain"],
        "difficulty": 0.26, "frequency": 47,
        "explanation": "Les deux mains plates descendent devant soi, ici et maintenant.",
        "examples": ["Aujourd'hui il pleut", "Le menu d'aujourd'hui", "Aujourd'hui je travaille"],
        "synonyms": ["Ce jour"],
    },
    # ---- B1 ---------------------------------------------------------------
    {
        "id": "comprendre", "text": "Comprendre", "level": "B1",
        "categories": ["éducation", "communication"], "related": ["apprendre", "expliquer"],
        "difficulty": 0.40, "frequency": 48, "video": True,
        "explanation": "L'index part du front et se déplie, l'idée s'éclaire.",
        "examples": ["Je comprends la question", "Comprendre une explication", "Tu as compris ?"],
        "synonyms": ["Saisir", "Piger"],
    },
    {
        "id": "expliquer", "text": "Expliquer", "level": "B1",
        "categories": ["communication"], "related": ["comprendre", "opinion"],
        "difficulty": 0.45, "frequency": 40,
        "explanation": "Les mains déroulent alternativement devant soi.",
        "examples": ["Expliquer une règle", "Peux-tu expliquer ?", "Expliquer son choix"],
        "synonyms": ["Clarifier"],
    },
    {
        "id": "voyage", "text": "Voyage", "level": "B1",
        "categories": ["loisirs"], "related": ["meteo"],
        "difficulty": 0.42, "frequency": 38,
        "explanation": "Deux doigts en V tournent en avançant dans l'espace.",
        "examples": ["Un voyage en train", "Préparer son voyage", "Bon voyage"],
        "synonyms": ["Séjour", "Périple"],
    },
    {
        "id": "sante", "text": "Santé", "level": "B1",
        "categories": ["santé"], "related": ["emotion"],
        "difficulty": 0.48, "frequency": 35,
        "explanation": "Les mains ouvertes descendent le long du buste.",
        "examples": ["Être en bonne santé", "Un problème de santé", "À ta santé"],
        "synonyms": ["Forme"],
    },
    {
        "id": "meteo", "text": "Météo", "level": "B1",
        "categories": ["quotidien", "nature"], "related": ["voyage"],
        "difficulty": 0.38, "frequency": 33,
        "explanation": "Signe composé du ciel et des conditions qui changent.",
        "examples": ["La météo de demain", "Regarder la météo", "Une météo capricieuse"],
        "synonyms": ["Le temps qu'il fait"],
    },
    {
        "id": "emotion", "text": "Émotion", "level": "B1",
        "categories": ["émotions"], "related": ["sante", "opinion"],
        "difficulty": 0.44, "frequency": 36,
        "explanation": "Les mains remontent le long du torse, expression faciale marquée.",
        "examples": ["Exprimer une émotion", "Une forte émotion", "Partager ses émotions"],
        "synonyms": ["Sentiment"],
    },
    # ---- B2 ---------------------------------------------------------------
    {
        "id": "negocier", "text": "Négocier", "level": "B2",
        "categories": ["travail", "communication"], "related": ["travail", "opinion"],
        "difficulty": 0.60, "frequency": 25,
        "explanation": "Les mains alternent d'un interlocuteur à l'autre dans l'espace.",
        "examples": ["Négocier un salaire", "Négocier un contrat", "Savoir négocier"],
        "synonyms": ["Discuter", "Marchander"],
    },
    {
        "id": "environnement", "text": "Environnement", "level": "B2",
        "categories": ["société", "nature"], "related": ["politique"],
        "difficulty": 0.58, "frequency": 24,
        "explanation": "La main tourne autour de l'autre poing, le monde qui entoure.",
        "examples": ["Protéger l'environnement", "L'environnement de travail", "Un environnement calme"],
        "synonyms": ["Nature", "Milieu"],
    },
    {
        "id": "politique", "text": "Politique", "level": "B2",
        "categories": ["société"], "related": ["justice", "opinion"],
        "difficulty": 0.65, "frequency": 22,
        "explanation": "Signe associé au pouvoir et au débat public.",
        "examples": ["Parler de politique", "Un débat politique", "La politique locale"],
        "synonyms": ["Vie publique"],
    },
    {
        "id": "justice", "text": "Justice", "level": "B2",
        "categories": ["société"], "related": ["politique"],
        "difficulty": 0.62, "frequency": 20,
        "explanation": "Les mains figurent les plateaux d'une balance.",
        "examples": ["Rendre justice", "Le palais de justice", "Un sentiment de justice"],
        "synonyms": ["Équité"],
    },
    {
        "id": "opinion", "text": "Opinion", "level": "B2",
        "categories": ["communication"], "related": ["expliquer", "politique"],
        "difficulty": 0.55, "frequency": 26,
        "explanation": "L'index part de la tempe puis s'oriente vers l'interlocuteur.",
        "examples": ["Donner son opinion", "Une opinion différente", "Changer d'opinion"],
        "synonyms": ["Avis", "Point de vue"],
    },
    # ---- C1 ---------------------------------------------------------------
    {
        "id": "philosophie", "text": "Philosophie", "level": "C1",
        "categories": ["culture", "abstrait"], "related": ["epistemologie"],
        "difficulty": 0.75, "frequency": 15, "video": True,
        "explanation": "Concept abstrait exprimé par la réflexion portée à la tempe.",
        "examples": ["Un cours de philosophie", "La philosophie des Lumières", "Une philosophie de vie"],
        "synonyms": ["Pensée"],
    },
    {
        "id": "culture_sourde", "text": "Culture sourde", "level": "C1",
        "categories": ["culture", "communauté"], "related": ["histoire_lsf"],
        "difficulty": 0.70, "frequency": 18, "video": True,
        "explanation": "Ensemble des pratiques et valeurs partagées par la communauté sourde.",
        "examples": ["Découvrir la culture sourde", "Les arts de la culture sourde", "La culture sourde en France"],
        "synonyms": ["Culture Sourde"],
    },
    {
        "id": "histoire_lsf", "text": "Histoire de la LSF", "level": "C1",
        "categories": ["culture", "histoire"], "related": ["culture_sourde"],
        "difficulty": 0.72, "frequency": 14,
        "explanation": "De l'abbé de l'Épée au congrès de Milan et au Réveil sourd.",
        "examples": ["Le congrès de Milan", "L'abbé de l'Épée", "Le Réveil sourd des années 1970"],
        "synonyms": ["Histoire sourde"],
    },
    {
        "id": "iconicite", "text": "Iconicité", "level": "C1",
        "categories": ["linguistique"], "related": ["metaphore"],
        "difficulty": 0.80, "frequency": 12,
        "explanation": "Ressemblance entre la forme du signe et ce qu'il désigne.",
        "examples": ["L'iconicité d'un signe", "Un signe très iconique", "Iconicité et arbitraire"],
        "synonyms": ["Caractère iconique"],
    },
    {
        "id": "metaphore", "text": "Métaphore", "level": "C1",
        "categories": ["linguistique", "culture"], "related": ["iconicite", "ironie"],
        "difficulty": 0.78, "frequency": 11,
        "explanation": "Transfert de sens porté par l'espace et la configuration.",
        "examples": ["Une métaphore visuelle", "Filer la métaphore", "La métaphore du temps"],
        "synonyms": ["Image"],
    },
    # ---- C2 ---------------------------------------------------------------
    {
        "id": "poesie_visuelle", "text": "Poésie visuelle", "level": "C2",
        "categories": ["culture", "art"], "related": ["metaphore"],
        "difficulty": 0.90, "frequency": 8, "video": True,
        "explanation": "Création artistique jouant sur le rythme et les configurations.",
        "examples": ["Un poème en LSF", "Un festival de poésie visuelle", "Le rythme d'un poème signé"],
        "synonyms": ["Poésie signée"],
    },
    {
        "id": "ironie", "text": "Ironie", "level": "C2",
        "categories": ["linguistique"], "related": ["metaphore"],
        "difficulty": 0.88, "frequency": 9,
        "explanation": "Décalage porté surtout par les composantes non manuelles.",
        "examples": ["Parler avec ironie", "Une pointe d'ironie", "L'ironie du sort"],
        "synonyms": ["Sarcasme"],
    },
    {
        "id": "transfert_personnel", "text": "Transfert personnel", "level": "C2",
        "categories": ["linguistique"], "related": ["iconicite"],
        "difficulty": 0.95, "frequency": 6,
        "explanation": "Le signeur incarne un personnage, regard et posture compris.",
        "examples": ["Raconter avec un transfert personnel", "Incarner un personnage", "Le transfert dans un récit"],
        "synonyms": ["Prise de rôle"],
    },
    {
        "id": "epistemologie", "text": "Épistémologie", "level": "C2",
        "categories": ["abstrait"], "related": ["philosophie"],
        "difficulty": 0.92, "frequency": 5,
        "explanation": "Étude critique des sciences et de la connaissance.",
        "examples": ["Un séminaire d'épistémologie", "L'épistémologie des sciences", "Une question d'épistémologie"],
        "synonyms": ["Théorie de la connaissance"],
    },
]


def _build_concept(record: dict[str, Any]) -> Concept:
    return Concept(
        id=record["id"],
        text=record["text"],
        level=CECRLLevel(record["level"]),
        categories=tuple(record["categories"]),
        related_concepts=tuple(record.get("related", ())),
        difficulty=record["difficulty"],
        frequency=record["frequency"],
        video_url=f"/assets/videos/lsf/{record['id']}.mp4" if record.get("video") else None,
    )


def _build_details(record: dict[str, Any]) -> ConceptDetails:
    kind = "verbe" if record["id"] in _VERBS else "nom"
    return ConceptDetails(
        id=record["id"],
        explanation=record["explanation"],
        examples=tuple(record["examples"]),
        variants=REGIONAL_VARIANTS,
        history=f"Le signe « {record['text']} » est attesté dans l'usage de la communauté sourde.",
        grammar={
            "type": kind,
            "placement": "espace neutre",
            "mouvement": "simple" if record["difficulty"] <= 0.5 else "composé",
        },
        contexts=DEFAULT_CONTEXTS,
        synonyms=tuple(record.get("synonyms", ())),
    )


def load_catalog() -> tuple[list[Concept], dict[str, ConceptDetails]]:
    """Return the seed concepts and their detail records."""
    concepts = [_build_concept(r) for r in CONCEPT_RECORDS]
    details = {r["id"]: _build_details(r) for r in CONCEPT_RECORDS}
    return concepts, details
