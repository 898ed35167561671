import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from formulaplot.data import Dataset  # noqa: E402


HOUSES_CSV = """\
SalePrice,GrLivArea,LotArea,KitchenQual,CentralAir,BedroomAbvGr,OverallQual,Neighborhood
208500,1710,8450,Gd,Y,3,7,CollgCr
181500,1262,9600,TA,Y,3,6,Veenker
223500,1786,11250,Gd,Y,3,7,CollgCr
140000,1717,9550,Gd,Y,3,7,Crawfor
250000,2198,14260,Gd,Y,4,8,NoRidge
143000,1362,14115,TA,Y,1,5,Mitchel
307000,1694,10084,Gd,Y,3,8,Somerst
200000,2090,10382,TA,Y,3,7,NWAmes
129900,1774,6120,TA,N,2,7,OldTown
118000,1077,7420,TA,Y,2,5,BrkSide
129500,1040,11200,TA,Y,3,5,Sawyer
345000,2324,11924,Ex,Y,4,9,NridgHt
144000,912,12968,TA,Y,2,5,Sawyer
279500,1494,10652,Gd,Y,3,7,CollgCr
157000,1253,10920,TA,Y,2,6,NAmes
132000,854,6120,TA,Y,2,7,BrkSide
149000,1004,11241,TA,Y,2,6,NAmes
90000,1296,10791,TA,Y,2,4,Sawyer
159000,1114,13695,TA,Y,3,5,SawyerW
139000,1339,7560,TA,Y,3,5,NAmes
"""


@pytest.fixture
def houses_csv(tmp_path):
    path = tmp_path / "houses.csv"
    path.write_text(HOUSES_CSV, encoding="utf-8")
    return path


@pytest.fixture
def houses(houses_csv):
    return Dataset(pd.read_csv(houses_csv))


@pytest.fixture
def numbers():
    rng = np.random.default_rng(0)
    x = np.linspace(0, 10, 40)
    return Dataset(
        {
            "x": x,
            "y": 2 * x + 1 + rng.normal(0, 0.5, len(x)),
            "group": np.where(np.arange(len(x)) % 2 == 0, "a", "b"),
            "flag": np.arange(len(x)) % 3 == 0,
            "weight": np.arange(len(x)),
        }
    )


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
