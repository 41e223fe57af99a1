"""Skill taxonomy used by the local fallback extractor.

Canonical names are what end up on consultant profiles; synonyms are matched
as whole words in CV text.
"""

SKILL_TAXONOMY = [
    # Languages
    {"canonical_skill": "Python", "synonyms": ["python", "python3"], "category": "Programming Language"},
    {"canonical_skill": "JavaScript", "synonyms": ["javascript", "ecmascript", "es6"], "category": "Programming Language"},
    {"canonical_skill": "TypeScript", "synonyms": ["typescript"], "category": "Programming Language"},
    {"canonical_skill": "Java", "synonyms": ["java", "jdk"], "category": "Programming Language"},
    {"canonical_skill": "C#", "synonyms": ["c#", "csharp"], "category": "Programming Language"},
    {"canonical_skill": "Go", "synonyms": ["golang"], "category": "Programming Language"},
    {"canonical_skill": "Kotlin", "synonyms": ["kotlin"], "category": "Programming Language"},
    {"canonical_skill": "SQL", "synonyms": ["sql", "t-sql", "pl/sql"], "category": "Database"},

    # Platforms and frameworks
    {"canonical_skill": "Node.js", "synonyms": ["node.js", "nodejs", "node"], "category": "Framework"},
    {"canonical_skill": "React", "synonyms": ["react", "reactjs", "react.js"], "category": "Framework"},
    {"canonical_skill": "Vue.js", "synonyms": ["vue", "vuejs", "vue.js"], "category": "Framework"},
    {"canonical_skill": "Angular", "synonyms": ["angular", "angularjs"], "category": "Framework"},
    {"canonical_skill": ".NET", "synonyms": [".net", "dotnet", "asp.net"], "category": "Framework"},
    {"canonical_skill": "Spring Boot", "synonyms": ["spring boot"], "category": "Framework"},
    {"canonical_skill": "Django", "synonyms": ["django"], "category": "Framework"},
    {"canonical_skill": "FastAPI", "synonyms": ["fastapi"], "category": "Framework"},

    # Data
    {"canonical_skill": "PostgreSQL", "synonyms": ["postgresql", "postgres"], "category": "Database"},
    {"canonical_skill": "MongoDB", "synonyms": ["mongodb", "mongo"], "category": "Database"},
    {"canonical_skill": "Power BI", "synonyms": ["power bi", "powerbi"], "category": "Analytics"},
    {"canonical_skill": "Machine Learning", "synonyms": ["machine learning"], "category": "AI/ML"},
    {"canonical_skill": "Data Analysis", "synonyms": ["data analysis", "data analytics"], "category": "Analytics"},

    # Cloud and operations
    {"canonical_skill": "AWS", "synonyms": ["aws", "amazon web services"], "category": "Cloud"},
    {"canonical_skill": "Azure", "synonyms": ["azure", "microsoft azure"], "category": "Cloud"},
    {"canonical_skill": "GCP", "synonyms": ["gcp", "google cloud"], "category": "Cloud"},
    {"canonical_skill": "Docker", "synonyms": ["docker"], "category": "DevOps"},
    {"canonical_skill": "Kubernetes", "synonyms": ["kubernetes", "k8s"], "category": "DevOps"},
    {"canonical_skill": "CI/CD", "synonyms": ["ci/cd", "github actions", "jenkins", "gitlab ci"], "category": "DevOps"},
    {"canonical_skill": "Terraform", "synonyms": ["terraform"], "category": "DevOps"},

    # Enterprise systems
    {"canonical_skill": "SAP", "synonyms": ["sap", "s/4hana"], "category": "Enterprise"},
    {"canonical_skill": "Salesforce", "synonyms": ["salesforce"], "category": "Enterprise"},

    # Ways of working
    {"canonical_skill": "Agile", "synonyms": ["agile", "scrum", "kanban"], "category": "Methodology"},
    {"canonical_skill": "Project Management", "synonyms": ["project management", "project manager", "pmp", "prince2"], "category": "Methodology"},
    {"canonical_skill": "UX Design", "synonyms": ["ux", "user experience", "figma"], "category": "Design"},
    {"canonical_skill": "Leadership", "synonyms": ["leadership", "team lead", "tech lead"], "category": "Soft Skill"},
]

TAXONOMY_VERSION = "taxo-v2"
