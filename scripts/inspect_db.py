import sqlite3, os
ROOT = os.path.dirname(os.path.dirname(__file__))
DB = os.path.join(ROOT, 'data', 'agenda.db')
print('DB:', DB, 'exists:', os.path.exists(DB))
con = sqlite3.connect(DB)
cur = con.cursor()
for table in ('settings', 'patients', 'appointments', 'documents'):
    cur.execute(f"SELECT COUNT(*) FROM {table}")
    print(f'{table}:', cur.fetchone()[0])
cur.execute("SELECT status, COUNT(*) FROM documents GROUP BY status")
print('documents by status:', dict(cur.fetchall()))
cur.execute("SELECT id, type, status, date, patient_name, appointment_id FROM documents ORDER BY id DESC LIMIT 10")
for r in cur.fetchall():
    print(r)
con.close()
