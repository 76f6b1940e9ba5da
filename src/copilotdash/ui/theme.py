APP_CSS = """
Screen {
  background: #0c0f1a;
  color: #e8ecff;
}

#body {
  height: 1fr;
}

#sidebar {
  width: 30;
  background: #111528;
}

#sidebar SelectionList {
  height: auto;
  max-height: 50%;
  margin: 0 1 1 1;
  background: #111528;
  border: round #7184d6;
}

#main {
  width: 1fr;
}

SeatsCard {
  margin: 1 2;
  padding: 0;
  background: #111528;
  height: auto;
}

UsageTable {
  margin: 0 2;
  height: 1fr;
  background: #111528;
}

Footer {
  background: #0e1225;
  color: #7184d6;
}

Header {
  background: #141830;
  color: #e8ecff;
}
"""
