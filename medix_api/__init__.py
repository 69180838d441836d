"""
Medix Tasks API.

Struttura:
- config.py   : impostazioni da ambiente (.env) e logging
- db.py       : handle Database (engine, sessioni SQLAlchemy, dispose)
- models.py   : modelli ORM dello store applicativo (User, Task, Category)
- services.py : CRUD utenti/task e categoria di default "General"
- medix.py    : viste in sola lettura sullo schema esterno Medix
- errors.py   : errori API e mappatura su HTTP
- api_main.py : router FastAPI e create_app
- cli.py      : CLI (init, list, add-user, add-task, serve)
"""
