from pandas import DataFrame

from spatialmif.spatial.squidpy_metrics import convert_df_to_anndata


def test_convert_df_to_anndata():
    cells = DataFrame({
        'cell_x': [0.0, 1.0, 2.0],
        'cell_y': [0.0, 1.0, 0.5],
        'phenotype': ['T', 'tumor', 'T'],
    })
    adata = convert_df_to_anndata(cells, 'phenotype')
    assert list(adata.obs['cluster'].cat.categories) == ['T', 'tumor']
    assert adata.obsm['spatial'].shape == (3, 2)
