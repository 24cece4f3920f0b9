"""Word lists used by the lexical FAQ scorer. All of them can be overridden per FAQ tool config."""
from __future__ import annotations

from typing import Dict, List, Tuple

LANGUAGE_ABBREVIATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "u": "you", "ur": "your", "youre": "you are", "cant": "cannot", "wont": "will not",
        "dont": "do not", "isnt": "is not", "arent": "are not", "wasnt": "was not",
        "werent": "were not", "hasnt": "has not", "havent": "have not", "hadnt": "had not",
        "shouldnt": "should not", "wouldnt": "would not", "couldnt": "could not",
        "mustnt": "must not", "neednt": "need not", "r": "are",
        "whats": "what is", "wheres": "where is", "whos": "who is", "hows": "how is",
        "whens": "when is", "whys": "why is", "thats": "that is", "theres": "there is",
        "heres": "here is",
        "im": "i am", "ive": "i have", "ill": "i will", "id": "i would", "youll": "you will",
        "youd": "you would", "youve": "you have", "theyll": "they will", "theyd": "they would",
        "theyve": "they have", "were": "we are", "weve": "we have", "well": "we will",
        "wed": "we would", "its": "it is", "itll": "it will", "itd": "it would",
        "api": "application programming interface", "faq": "frequently asked questions",
        "url": "uniform resource locator", "ui": "user interface", "ux": "user experience",
        "db": "database", "pw": "password", "pwd": "password", "pass": "password",
        "login": "log in", "signup": "sign up", "signin": "sign in", "logout": "log out",
        "signout": "sign out",
    },
    "es": {
        "q": "que", "xq": "por que", "pq": "por que", "tb": "tambien", "tbn": "tambien",
        "tmb": "tambien", "x": "por", "xfa": "por favor", "pfa": "por favor", "qtal": "que tal",
        "cmo": "como", "dnd": "donde", "qnd": "cuando", "qn": "quien", "salu2": "saludos",
        "bss": "besos", "mxo": "mucho", "mxa": "mucha", "ntp": "no te preocupes",
        "sldos": "saludos", "tkm": "te quiero mucho",
    },
    "pt": {
        "vc": "voce", "vcs": "voces", "pq": "por que", "pra": "para", "tb": "tambem",
        "tbm": "tambem", "qnd": "quando", "qm": "quem", "eh": "e", "nd": "nada", "td": "tudo",
        "bjs": "beijos", "bjss": "beijos", "flw": "falou", "vlw": "valeu", "cmg": "comigo",
        "ctg": "contigo", "dps": "depois", "hj": "hoje", "sla": "sei la", "rsrs": "risos",
        "kk": "risos",
    },
    "fr": {
        "pr": "pour", "qd": "quand", "ds": "dans", "vs": "vous", "tt": "tout", "tte": "toute",
        "ts": "tous", "ttes": "toutes", "bcp": "beaucoup", "bjr": "bonjour", "bsr": "bonsoir",
        "slt": "salut", "mtn": "maintenant", "qqs": "quelques", "qqn": "quelquun",
        "qq": "quelque", "qc": "quelque chose", "pk": "pourquoi", "pq": "pourquoi",
        "pcq": "parce que", "dsl": "desole", "mdr": "mort de rire", "lol": "mort de rire",
        "cc": "coucou",
    },
    "de": {
        "u": "und", "od": "oder", "z": "zu", "v": "von", "m": "mit", "n": "ein", "ne": "eine",
        "aufm": "auf dem", "gehts": "geht es", "haste": "hast du", "biste": "bist du",
        "kannste": "kannst du", "willste": "willst du", "machste": "machst du",
        "isses": "ist es", "hats": "hat es", "wirds": "wird es", "wenns": "wenn es",
        "mfg": "mit freundlichen gruessen", "lg": "liebe gruesse", "vg": "viele gruesse",
    },
    "it": {
        "x": "per", "xche": "perche", "nn": "non", "cmq": "comunque", "qnd": "quando",
        "qnt": "quanto", "qst": "questo", "qlc": "qualche", "qlcs": "qualcosa",
        "qlcn": "qualcuno", "tt": "tutto", "tvb": "ti voglio bene", "tvtb": "ti voglio tanto bene",
    },
}

# Keyword lists for the frequency-based language guess; English is the default.
LANGUAGE_KEYWORDS: Dict[str, List[str]] = {
    "es": ["que", "como", "donde", "cuando", "por", "para", "con", "una", "este", "esta", "muy",
           "mas", "todo", "hacer", "tiempo", "año", "si", "no", "hola", "gracias"],
    "pt": ["que", "como", "onde", "quando", "por", "para", "com", "uma", "este", "esta", "muito",
           "mais", "todo", "fazer", "tempo", "ano", "sim", "nao", "ola", "obrigado"],
    "fr": ["que", "comment", "ou", "quand", "pour", "avec", "une", "cette", "tres", "plus", "tout",
           "faire", "temps", "annee", "oui", "non", "bonjour", "merci"],
    "de": ["was", "wie", "wo", "wann", "fur", "mit", "eine", "diese", "sehr", "mehr", "alle",
           "machen", "zeit", "jahr", "ja", "nein", "hallo", "danke"],
    "it": ["che", "come", "dove", "quando", "per", "con", "una", "questa", "molto", "piu", "tutto",
           "fare", "tempo", "anno", "si", "no", "ciao", "grazie"],
}

ANTONYM_PAIRS: List[Tuple[str, str]] = [
    ("in", "out"), ("on", "off"), ("start", "end"), ("begin", "finish"), ("open", "close"),
    ("enter", "exit"), ("arrive", "depart"), ("login", "logout"), ("signin", "signout"),
    ("checkin", "checkout"), ("upload", "download"), ("import", "export"),
    ("enable", "disable"), ("activate", "deactivate"), ("connect", "disconnect"),
    ("lock", "unlock"), ("show", "hide"), ("expand", "collapse"), ("increase", "decrease"),
    ("add", "remove"), ("create", "delete"), ("save", "cancel"), ("accept", "reject"),
    ("allow", "deny"), ("grant", "revoke"), ("install", "uninstall"), ("freeze", "unfreeze"),
    ("subscribe", "unsubscribe"),
]

TOPIC_CLUSTERS: List[List[str]] = [
    # hospitality
    ["check", "room", "hotel", "guest", "stay", "reservation", "booking"],
    ["wifi", "internet", "connection", "network", "password"],
    ["breakfast", "food", "meal", "restaurant", "dining", "eat"],
    ["pool", "swimming", "water", "swim", "deck"],
    ["parking", "car", "vehicle", "garage", "valet"],
    ["towel", "linen", "clean", "housekeeping", "service"],
    ["key", "card", "access", "door", "lock", "unlock"],
    ["checkout", "checkin", "arrival", "departure", "time"],
    ["gym", "fitness", "exercise", "workout", "equipment"],
    ["pet", "animal", "dog", "cat", "allowed", "policy"],
    # technical
    ["api", "endpoint", "request", "response", "data"],
    ["database", "query", "table", "record", "sql"],
    ["authentication", "login", "password", "user", "account"],
    ["error", "bug", "issue", "problem", "fix", "solve"],
    ["file", "upload", "download", "document", "attachment"],
]
