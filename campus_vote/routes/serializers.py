from campus_vote.services.clock import isoformat


def election_to_dict(election, now=None):
    return {
        "id": election.id,
        "type": election.type,
        "titre": election.title,
        "description": election.description,
        "filiere": election.program,
        "annee": election.year,
        "ecole": election.school_scope,
        "dateDebutCandidature": isoformat(election.candidacy_start),
        "dateFinCandidature": isoformat(election.candidacy_end),
        "dateDebut": isoformat(election.vote_start),
        "dateFin": isoformat(election.vote_end),
        "isActive": election.is_active,
        "statut": election.status(now),
    }


def candidate_to_dict(candidate):
    return {
        "id": candidate.id,
        "userId": candidate.user_id,
        "electionId": candidate.election_id,
        "nom": candidate.last_name,
        "prenom": candidate.first_name,
        "programme": candidate.program_text,
        "photoUrl": candidate.photo_url,
        "statut": candidate.status,
    }


def student_to_dict(student):
    return {
        "id": student.id,
        "nom": student.last_name,
        "prenom": student.first_name,
        "filiere": student.program,
        "annee": student.year,
        "ecole": student.effective_school,
        "matricule": student.matricule,
        "responsableSalle": student.is_room_representative,
        "delegueEcole": student.is_school_delegate,
    }
